"""Application settings constants."""

from __future__ import annotations

# Results requested per search query variant.
SEARCH_MAX_RESULTS = 10

# Wall-clock limit for the external downloader before it is killed.
DOWNLOAD_TIMEOUT_SECONDS = 90.0

# Wall-clock limit for ffmpeg conversions.
CONVERT_TIMEOUT_SECONDS = 300.0

DEFAULT_AUDIO_FORMAT = "m4a"

DEFAULT_FFMPEG_BINARY = "ffmpeg"

# Environment fallback for the YouTube Data API key.
API_KEY_ENV = "JUKEBOX_YOUTUBE_API_KEY"
