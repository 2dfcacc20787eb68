"""Report which external tools an :class:`AudioSourceConfig` would use."""

from __future__ import annotations

import os
import shutil

from yt_dlp.version import __version__ as ytdlp_version

from engine.config import AudioSourceConfig


def get_runtime_info(config: AudioSourceConfig) -> dict:
    downloader = config.audio_command[0] if config.audio_command else None
    return {
        "app_version": os.environ.get("JUKEBOX_AUDIO_VERSION", "0.1.0"),
        "yt_dlp_version": ytdlp_version,
        "api_key_configured": bool(config.api_key),
        "audio_format": config.audio_format,
        "downloader": shutil.which(downloader) or downloader if downloader else None,
        "ffmpeg_path": shutil.which(config.ffmpeg_path),
        "work_dir": config.work_dir,
    }
