"""Wall-clock latency measurement around provider calls."""

from __future__ import annotations

import math
import time
from collections.abc import Callable

from voicebench.adapters.base import LatencyMetrics, ProviderResponse


class LatencyTimer:
    """Measure time-to-first-byte and total time in milliseconds.

    The clock is injectable; it must return seconds as a float.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._start: float | None = None
        self._first_byte: float | None = None
        self._end: float | None = None

    def start(self) -> LatencyTimer:
        self._start = self._clock()
        self._first_byte = None
        self._end = None
        return self

    def mark_first_byte(self) -> None:
        """Record the first byte; later calls are ignored."""
        if self._first_byte is None:
            self._first_byte = self._clock()

    def stop(self) -> None:
        self._end = self._clock()

    def _elapsed_ms(self, until: float | None) -> float:
        if self._start is None:
            raise RuntimeError("LatencyTimer was not started")
        end = until if until is not None else self._clock()
        return (end - self._start) * 1000

    @property
    def total_ms(self) -> float:
        return self._elapsed_ms(self._end)

    @property
    def ttfb_ms(self) -> float:
        """Time to first byte, or the total when no first byte was marked."""
        return self._elapsed_ms(self._first_byte if self._first_byte is not None else self._end)

    def metrics(self) -> LatencyMetrics:
        return LatencyMetrics(ttfb_ms=self.ttfb_ms, total_ms=self.total_ms)


def _finite(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def resolve_latency(response: ProviderResponse, measured_total_ms: float) -> tuple[int, int]:
    """Pick the latency values recorded on a result row.

    A provider-reported value is used only when it is a finite number;
    zero counts as reported. TTFB falls back to the provider total and
    then the measured total; the total falls back to the measured total.
    Values are rounded to whole milliseconds.
    """
    latency = response.latency
    reported_ttfb = _finite(latency.ttfb_ms) if latency else None
    reported_total = _finite(latency.total_ms) if latency else None
    total = reported_total if reported_total is not None else measured_total_ms
    ttfb = reported_ttfb if reported_ttfb is not None else total
    return round(ttfb), round(total)
