"""Tests for latency measurement and audio file helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from voicebench.adapters.base import LatencyMetrics, ProviderResponse
from voicebench.execution.audio import (
    extension_for,
    load_prompt_audio,
    mime_type_for,
    save_response_audio,
)
from voicebench.execution.latency import LatencyTimer, resolve_latency


def _clock(*values: float):
    ticks = iter(values)
    return lambda: next(ticks)


def _response(ttfb_ms: float | None, total_ms: float | None) -> ProviderResponse:
    return ProviderResponse(
        audio=b"", mime_type="audio/wav", latency=LatencyMetrics(ttfb_ms=ttfb_ms, total_ms=total_ms)
    )


class TestLatencyTimer:
    def test_measures_ttfb_and_total(self) -> None:
        timer = LatencyTimer(clock=_clock(1.0, 1.2, 1.5))
        timer.start()
        timer.mark_first_byte()
        timer.stop()
        assert timer.ttfb_ms == pytest.approx(200.0)
        assert timer.total_ms == pytest.approx(500.0)

    def test_first_byte_marked_once(self) -> None:
        timer = LatencyTimer(clock=_clock(0.0, 0.1, 0.3, 0.4))
        timer.start()
        timer.mark_first_byte()
        timer.mark_first_byte()
        timer.stop()
        assert timer.ttfb_ms == pytest.approx(100.0)
        assert timer.total_ms == pytest.approx(300.0)

    def test_ttfb_defaults_to_total(self) -> None:
        timer = LatencyTimer(clock=_clock(2.0, 2.05))
        timer.start()
        timer.stop()
        metrics = timer.metrics()
        assert metrics.ttfb_ms == pytest.approx(50.0)
        assert metrics.total_ms == pytest.approx(50.0)

    def test_not_started(self) -> None:
        with pytest.raises(RuntimeError, match="not started"):
            LatencyTimer().total_ms


class TestResolveLatency:
    def test_provider_values_win(self) -> None:
        assert resolve_latency(_response(120.4, 450.6), 999.0) == (120, 451)

    def test_ttfb_falls_back_to_provider_total(self) -> None:
        assert resolve_latency(_response(None, 300), 999.0) == (300, 300)

    def test_zero_ttfb_is_a_reported_value(self) -> None:
        assert resolve_latency(_response(0, 300), 999.0) == (0, 300)

    def test_falls_back_to_measured(self) -> None:
        assert resolve_latency(_response(None, None), 812.3) == (812, 812)

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_values_ignored(self, bad: float) -> None:
        assert resolve_latency(_response(bad, bad), 812.3) == (812, 812)
        assert resolve_latency(_response(bad, 300), 999.0) == (300, 300)
        assert resolve_latency(_response(120, bad), 450.0) == (120, 450)


class TestAudioMapping:
    @pytest.mark.parametrize(
        ("mime_type", "extension"),
        [
            ("audio/mpeg", "mp3"),
            ("audio/wav", "wav"),
            ("audio/wav; codecs=1", "wav"),
            ("AUDIO/OGG", "ogg"),
            ("audio/mp4", "m4a"),
            ("audio/unknown", "mp3"),
        ],
    )
    def test_extension_for(self, mime_type: str, extension: str) -> None:
        assert extension_for(mime_type) == extension

    def test_mime_type_for(self) -> None:
        assert mime_type_for("prompts/hello.WAV") == "audio/wav"
        assert mime_type_for("reply.m4a") == "audio/mp4"
        assert mime_type_for("notes.txt") is None


class TestPromptAudio:
    def test_loads_bytes_and_mime(self, tmp_path: Path) -> None:
        path = tmp_path / "hello.ogg"
        path.write_bytes(b"OggS-data")
        assert load_prompt_audio(path) == (b"OggS-data", "audio/ogg")

    def test_unknown_extension_defaults_to_wav(self, tmp_path: Path) -> None:
        path = tmp_path / "hello.raw"
        path.write_bytes(b"\x00\x01")
        assert load_prompt_audio(path) == (b"\x00\x01", "audio/wav")

    def test_missing_or_empty(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.wav"
        empty.write_bytes(b"")
        assert load_prompt_audio(tmp_path / "missing.wav") is None
        assert load_prompt_audio(empty) is None


class TestSaveResponseAudio:
    def test_writes_under_run_dir(self, tmp_path: Path) -> None:
        path = save_response_audio(
            tmp_path, "run-1", "weather", "openai-alloy", b"ID3-audio", "audio/mpeg"
        )
        assert path == tmp_path / "run-1" / "weather__openai-alloy.mp3"
        assert path.read_bytes() == b"ID3-audio"
        assert not list((tmp_path / "run-1").glob("*.tmp"))
