"""Per-provider leaderboard metrics over a run's result rows.

Error rows are counted but excluded from every mean and percentile.
Percentiles use statistics.quantiles, guarding the 0- and 1-sample
edge cases (quantiles requires >= 2 data points).
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable
from dataclasses import dataclass

from voicebench.models.run import EvalResult

SCORE_ATTRIBUTES: tuple[str, ...] = (
    "accuracy_score",
    "helpfulness_score",
    "naturalness_score",
    "efficiency_score",
)


@dataclass(frozen=True)
class ProviderSummary:
    """Aggregated metrics for one provider within a run."""

    provider_id: str
    pairs: int
    errors: int
    mean_wer: float | None
    mean_accuracy: float | None
    mean_helpfulness: float | None
    mean_naturalness: float | None
    mean_efficiency: float | None
    task_completion_rate: float | None
    mean_ttfb_ms: float | None
    total_ms_p50: float | None
    total_ms_p95: float | None
    overall_score: float | None


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def percentiles(values: list[float]) -> tuple[float | None, float | None]:
    """Return (p50, p95) of values, or (None, None) when empty."""
    if not values:
        return None, None
    if len(values) == 1:
        return values[0], values[0]
    # quantiles(n=100) gives 99 cut points -> index 49 is p50, 94 is p95
    cuts = statistics.quantiles(values, n=100)
    return cuts[49], cuts[94]


def summarize_provider(provider_id: str, results: list[EvalResult]) -> ProviderSummary:
    """Compute the summary for one provider's rows."""
    scored = [r for r in results if not r.is_error]

    score_means: dict[str, float | None] = {
        attr: _mean([getattr(r, attr) for r in scored if getattr(r, attr) is not None])
        for attr in SCORE_ATTRIBUTES
    }
    present = [m for m in score_means.values() if m is not None]
    overall = sum(present) / len(SCORE_ATTRIBUTES) if len(present) == len(SCORE_ATTRIBUTES) else None

    judged = [r.task_completed for r in scored if r.task_completed is not None]
    completion_rate = sum(1 for done in judged if done) / len(judged) if judged else None

    totals = [float(r.total_ms) for r in scored if r.total_ms is not None]
    p50, p95 = percentiles(totals)

    return ProviderSummary(
        provider_id=provider_id,
        pairs=len(results),
        errors=len(results) - len(scored),
        mean_wer=_mean([r.wer for r in scored if r.wer is not None]),
        mean_accuracy=score_means["accuracy_score"],
        mean_helpfulness=score_means["helpfulness_score"],
        mean_naturalness=score_means["naturalness_score"],
        mean_efficiency=score_means["efficiency_score"],
        task_completion_rate=completion_rate,
        mean_ttfb_ms=_mean([float(r.ttfb_ms) for r in scored if r.ttfb_ms is not None]),
        total_ms_p50=p50,
        total_ms_p95=p95,
        overall_score=overall,
    )


def summarize_by_provider(
    results: Iterable[EvalResult],
    provider_order: list[str] | None = None,
) -> list[ProviderSummary]:
    """Summaries for every provider, best overall score first.

    Providers without an overall score sort last, in provider_order
    (or first-seen order) among themselves.
    """
    grouped: dict[str, list[EvalResult]] = {pid: [] for pid in provider_order or []}
    for result in results:
        grouped.setdefault(result.provider_id, []).append(result)

    summaries = [summarize_provider(pid, rows) for pid, rows in grouped.items()]
    return sorted(
        summaries,
        key=lambda s: (s.overall_score is None, -(s.overall_score or 0.0)),
    )
