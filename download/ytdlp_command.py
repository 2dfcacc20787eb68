"""Default downloader process: ``<url> <output_path> <audio_format>``.

Downloads the best available audio stream to exactly ``output_path`` with
yt-dlp (``<output_path>.part`` while in flight). Conversion to
``audio_format`` is left to the caller; the format only steers stream
selection toward a native match.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

logger = logging.getLogger("download.ytdlp_command")


def build_download_opts(output_path: str, audio_format: str) -> dict:
    audio_format = (audio_format or "").strip().lower()
    format_selector = "bestaudio/best"
    if audio_format:
        format_selector = f"bestaudio[ext={audio_format}]/{format_selector}"
    return {
        # outtmpl is a template; literal percent signs must be doubled.
        "outtmpl": output_path.replace("%", "%%"),
        "format": format_selector,
        "noplaylist": True,
        "no_chapters": True,
        "quiet": True,
        "no_warnings": False,
        "noprogress": True,
        "continuedl": True,
        "retries": 3,
        "socket_timeout": 30,
        "cachedir": False,
    }


def download_audio(url: str, output_path: str, audio_format: str) -> bool:
    opts = build_download_opts(output_path, audio_format)
    try:
        with YoutubeDL(opts) as ydl:
            ydl.download([url])
    except DownloadError as exc:
        logger.error("yt-dlp download failed url=%s: %s", url, exc)
        return False
    if not os.path.isfile(output_path):
        logger.error("yt-dlp finished but %s does not exist", output_path)
        return False
    logger.info("Downloaded %s to %s", url, output_path)
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Download the audio stream of a video with yt-dlp.")
    parser.add_argument("url", help="Video URL.")
    parser.add_argument("output_path", help="Exact output file path.")
    parser.add_argument("audio_format", help="Preferred audio extension, e.g. m4a.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stdout,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    return 0 if download_audio(args.url, args.output_path, args.audio_format) else 1


if __name__ == "__main__":
    raise SystemExit(main())
