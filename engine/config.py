"""Configuration loading for the audio source.

The configuration is read once at process start into an immutable
:class:`AudioSourceConfig` and passed explicitly to the pipeline.
"""

from __future__ import annotations

import json
import os
import re
import sys
from dataclasses import dataclass
from typing import Any, Mapping

from config.settings import (
    API_KEY_ENV,
    CONVERT_TIMEOUT_SECONDS,
    DEFAULT_AUDIO_FORMAT,
    DEFAULT_FFMPEG_BINARY,
    DOWNLOAD_TIMEOUT_SECONDS,
    SEARCH_MAX_RESULTS,
)
from engine.paths import DATA_DIR, DB_PATH, LOG_DIR, SCRIPTS_DIR, STORAGE_DIR, WORK_DIR, resolve_path


_FORMAT_RE = re.compile(r"^[a-z0-9]{1,8}$")


@dataclass(frozen=True)
class AudioSourceConfig:
    api_key: str | None
    audio_command: tuple[str, ...]
    audio_format: str = DEFAULT_AUDIO_FORMAT
    work_dir: str = str(WORK_DIR)
    storage_dir: str = str(STORAGE_DIR)
    db_path: str = str(DB_PATH)
    log_dir: str = str(LOG_DIR)
    download_timeout_seconds: float = DOWNLOAD_TIMEOUT_SECONDS
    convert_timeout_seconds: float | None = CONVERT_TIMEOUT_SECONDS
    search_max_results: int = SEARCH_MAX_RESULTS
    ffmpeg_path: str = DEFAULT_FFMPEG_BINARY
    dedupe_candidates: bool = True


def default_audio_command(platform: str | None = None) -> tuple[str, ...]:
    """Return the bundled downloader script invocation for the platform."""
    platform = platform or sys.platform
    if platform.lower().startswith("win"):
        return (str(SCRIPTS_DIR / "yt.bat"),)
    return ("bash", str(SCRIPTS_DIR / "yt.sh"))


def parse_audio_command(value: Any) -> tuple[str, ...] | None:
    """Accept a token list or a whitespace-separated command string."""
    if value is None:
        return None
    if isinstance(value, str):
        tokens = value.split()
    elif isinstance(value, (list, tuple)):
        tokens = [str(token) for token in value]
    else:
        return None
    return tuple(tokens) or None


def load_config(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _is_positive_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def validate_config(config):
    errors = []
    if not isinstance(config, dict):
        return ["config must be a JSON object"]

    section = config.get("audio_source", {})
    if not isinstance(section, dict):
        return ["audio_source must be an object"]

    api_key = section.get("api_key")
    if api_key is not None and not isinstance(api_key, str):
        errors.append("audio_source.api_key must be a string")

    audio_format = section.get("audio_format")
    if audio_format is not None:
        if not isinstance(audio_format, str) or not _FORMAT_RE.match(audio_format.strip().lower()):
            errors.append("audio_source.audio_format must be a short alphanumeric extension")

    command = section.get("audio_command")
    if command is not None and parse_audio_command(command) is None:
        errors.append("audio_source.audio_command must be a non-empty string or list of strings")

    timeout = section.get("download_timeout_seconds")
    if timeout is not None and not _is_positive_number(timeout):
        errors.append("audio_source.download_timeout_seconds must be a positive number")

    convert_timeout = section.get("convert_timeout_seconds")
    if convert_timeout is not None and not _is_positive_number(convert_timeout):
        errors.append("audio_source.convert_timeout_seconds must be a positive number or null")

    max_results = section.get("search_max_results")
    if max_results is not None:
        if isinstance(max_results, bool) or not isinstance(max_results, int) or not 1 <= max_results <= 50:
            errors.append("audio_source.search_max_results must be an integer between 1 and 50")

    ffmpeg_path = section.get("ffmpeg_path")
    if ffmpeg_path is not None and (not isinstance(ffmpeg_path, str) or not ffmpeg_path.strip()):
        errors.append("audio_source.ffmpeg_path must be a non-empty string")

    dedupe = section.get("dedupe_candidates")
    if dedupe is not None and not isinstance(dedupe, bool):
        errors.append("audio_source.dedupe_candidates must be a boolean")

    for key in ("work_dir", "storage_dir", "db_path", "log_dir"):
        value = config.get(key)
        if value is not None and (not isinstance(value, str) or not value.strip()):
            errors.append(f"{key} must be a non-empty string")

    return errors


def build_audio_source_config(config=None, *, environ: Mapping[str, str] | None = None) -> AudioSourceConfig:
    """Build the immutable runtime configuration from a parsed JSON object.

    Missing keys fall back to ``config.settings`` and ``engine.paths``
    defaults. The API key falls back to the ``JUKEBOX_YOUTUBE_API_KEY``
    environment variable.

    Raises:
        ValueError: If ``validate_config`` reports any error.
    """
    config = {} if config is None else config
    errors = validate_config(config)
    if errors:
        raise ValueError("; ".join(errors))

    environ = os.environ if environ is None else environ
    section = config.get("audio_source") or {}

    api_key = (section.get("api_key") or environ.get(API_KEY_ENV) or "").strip() or None
    command = parse_audio_command(section.get("audio_command")) or default_audio_command()
    audio_format = (section.get("audio_format") or DEFAULT_AUDIO_FORMAT).strip().lower()
    convert_timeout = section.get("convert_timeout_seconds", CONVERT_TIMEOUT_SECONDS)

    return AudioSourceConfig(
        api_key=api_key,
        audio_command=command,
        audio_format=audio_format,
        work_dir=resolve_path(config.get("work_dir"), DATA_DIR) if config.get("work_dir") else str(WORK_DIR),
        storage_dir=resolve_path(config.get("storage_dir"), DATA_DIR) if config.get("storage_dir") else str(STORAGE_DIR),
        db_path=resolve_path(config.get("db_path"), DATA_DIR) if config.get("db_path") else str(DB_PATH),
        log_dir=resolve_path(config.get("log_dir"), DATA_DIR) if config.get("log_dir") else str(LOG_DIR),
        download_timeout_seconds=float(section.get("download_timeout_seconds") or DOWNLOAD_TIMEOUT_SECONDS),
        convert_timeout_seconds=float(convert_timeout) if convert_timeout is not None else None,
        search_max_results=int(section.get("search_max_results") or SEARCH_MAX_RESULTS),
        ffmpeg_path=(section.get("ffmpeg_path") or DEFAULT_FFMPEG_BINARY).strip(),
        dedupe_candidates=bool(section.get("dedupe_candidates", True)),
    )
