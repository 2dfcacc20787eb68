"""Static audio format to MIME type mapping."""

from __future__ import annotations

AUDIO_MIME_TYPES = {
    "m4a": "audio/m4a",
    "aac": "audio/aac",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "wav": "audio/wav",
}

DEFAULT_AUDIO_MIME_TYPE = "audio/mpeg"

LOG_MIME_TYPE = "text/plain"


def mime_type_for_format(audio_format: str | None) -> str:
    """Return the MIME type for an audio extension, defaulting to ``audio/mpeg``."""
    key = str(audio_format or "").strip().lower().lstrip(".")
    return AUDIO_MIME_TYPES.get(key, DEFAULT_AUDIO_MIME_TYPE)
