#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from db.asset_store import LocalAssetStore  # noqa: E402
from engine.acquisition import AcquisitionPipeline  # noqa: E402
from engine.config import build_audio_source_config, load_config  # noqa: E402
from engine.paths import ensure_dir  # noqa: E402
from engine.runtime import get_runtime_info  # noqa: E402
from engine.types import ClientInfo, SongRequest  # noqa: E402

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _setup_logging(log_dir, *, verbose=False):
    ensure_dir(log_dir)
    root = logging.getLogger("")
    log_path = os.path.join(log_dir, "audio_source.log")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    has_file = False
    has_stream = False
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            if os.path.abspath(getattr(handler, "baseFilename", "")) == os.path.abspath(log_path):
                has_file = True
        elif isinstance(handler, logging.StreamHandler):
            has_stream = True
    if not has_file:
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        root.addHandler(file_handler)
    if not has_stream:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(stream_handler)
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find a song on YouTube and store its audio.")
    parser.add_argument("--config", help="Path to a JSON config file.")
    parser.add_argument("--id", dest="song_id", help="Song identifier used for the storage key.")
    parser.add_argument("--artist", help="Artist name.")
    parser.add_argument("--title", help="Track title.")
    parser.add_argument("--duration-ms", type=int, help="Target track duration in milliseconds.")
    parser.add_argument("--client", default=None, help="Client identifier to tag log lines with.")
    parser.add_argument("--locate", action="store_true", help="Only print the URL of the best match.")
    parser.add_argument("--runtime-info", action="store_true", help="Print runtime versions and exit.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    raw_config = load_config(args.config) if args.config else {}
    try:
        config = build_audio_source_config(raw_config)
    except ValueError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2

    if args.runtime_info:
        print(json.dumps(get_runtime_info(config), indent=2))
        return 0

    missing = [
        flag
        for flag, value in (
            ("--id", args.song_id),
            ("--artist", args.artist),
            ("--title", args.title),
            ("--duration-ms", args.duration_ms),
        )
        if value in (None, "")
    ]
    if missing:
        parser.error(f"the following arguments are required: {', '.join(missing)}")

    try:
        request = SongRequest(
            id=args.song_id,
            artist=args.artist,
            title=args.title,
            duration_ms=args.duration_ms,
        )
    except (TypeError, ValueError) as exc:
        print(f"Invalid song request: {exc}", file=sys.stderr)
        return 2

    _setup_logging(config.log_dir, verbose=args.verbose)
    storage = LocalAssetStore(config.storage_dir, config.db_path)
    pipeline = AcquisitionPipeline(config, storage)
    client_info = ClientInfo(user_uid=args.client)

    if args.locate:
        url = pipeline.locate(request, client_info)
        if url is None:
            print("No match found", file=sys.stderr)
            return 1
        print(url)
        return 0

    result = pipeline.provide(request, client_info)
    if not result.ok:
        print(f"Acquisition failed: {result.reason.value}", file=sys.stderr)
        return 1
    print(result.asset.path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
