"""Audio file helpers: MIME/extension mapping, prompt loading, response saving."""

from __future__ import annotations

import os
from pathlib import Path

MIME_TO_EXTENSION: dict[str, str] = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/wave": "wav",
    "audio/x-wav": "wav",
    "audio/ogg": "ogg",
    "audio/opus": "opus",
    "audio/flac": "flac",
    "audio/aac": "aac",
    "audio/mp4": "m4a",
    "audio/webm": "webm",
}

EXTENSION_TO_MIME: dict[str, str] = {
    "mp3": "audio/mpeg",
    "mpga": "audio/mpeg",
    "mpeg": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "oga": "audio/ogg",
    "opus": "audio/opus",
    "flac": "audio/flac",
    "aac": "audio/aac",
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "webm": "audio/webm",
}

DEFAULT_EXTENSION = "mp3"


def extension_for(mime_type: str) -> str:
    """File extension for an audio MIME type; mp3 when unknown.

    Parameters such as ``audio/wav; codecs=1`` are ignored.
    """
    base = mime_type.split(";", 1)[0].strip().lower()
    return MIME_TO_EXTENSION.get(base, DEFAULT_EXTENSION)


def mime_type_for(path: str | Path) -> str | None:
    """Audio MIME type for a file name, or None for unknown extensions."""
    return EXTENSION_TO_MIME.get(Path(path).suffix.lstrip(".").lower())


def load_prompt_audio(path: str | Path) -> tuple[bytes, str] | None:
    """Read prompt audio from disk.

    Returns:
        (audio bytes, MIME type), or None when the file is missing,
        unreadable, or empty.
    """
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError:
        return None
    if not data:
        return None
    return data, mime_type_for(file_path) or "audio/wav"


def save_response_audio(
    audio_dir: Path,
    run_id: str,
    scenario_id: str,
    provider_id: str,
    audio: bytes,
    mime_type: str,
) -> Path:
    """Write response audio to ``<audio_dir>/<run>/<scenario>__<provider>.<ext>``.

    Scenario ids never contain an underscore, so the double underscore keeps
    names unique even when ids share hyphenated prefixes.

    Writes atomically: data goes to a .tmp file first, then is renamed.

    Returns:
        Path of the written file.
    """
    run_dir = audio_dir / run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    target = run_dir / f"{scenario_id}__{provider_id}.{extension_for(mime_type)}"
    tmp_path = target.with_suffix(target.suffix + ".tmp")
    tmp_path.write_bytes(audio)
    os.replace(tmp_path, target)
    return target
