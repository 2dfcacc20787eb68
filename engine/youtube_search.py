"""YouTube Data API candidate search.

Every call is best-effort: provider failures are logged and absorbed as an
empty result so one failed query variant never aborts the other.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config.settings import SEARCH_MAX_RESULTS
from engine.types import Candidate, SongRequest

logger = logging.getLogger(__name__)

_ISO8601_DURATION_RE = re.compile(
    r"^P(?:(\d+)W)?(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$"
)


def parse_iso8601_duration_ms(value) -> int | None:
    """Parse a YouTube ``contentDetails.duration`` such as ``PT3M41S``."""
    if not value or not isinstance(value, str):
        return None
    match = _ISO8601_DURATION_RE.match(value.strip().upper())
    if not match or value.strip().upper() in ("P", "PT"):
        return None
    weeks, days, hours, minutes, seconds = match.groups()
    total_seconds = (
        int(weeks or 0) * 7 * 86400
        + int(days or 0) * 86400
        + int(hours or 0) * 3600
        + int(minutes or 0) * 60
        + float(seconds or 0)
    )
    return int(round(total_seconds * 1000))


def youtube_service(api_key):
    return build("youtube", "v3", developerKey=api_key, cache_discovery=False)


class YouTubeSearchClient:
    """Search and detail lookups against the YouTube Data API v3."""

    def __init__(self, api_key: str | None, *, service: Any = None) -> None:
        self._api_key = (api_key or "").strip() or None
        self._service = service

    @property
    def enabled(self) -> bool:
        return self._api_key is not None

    def _get_service(self):
        if self._service is None:
            self._service = youtube_service(self._api_key)
        return self._service

    def search(self, query: str, max_results: int = SEARCH_MAX_RESULTS) -> list[str]:
        """Return up to ``max_results`` video ids for ``query`` in result order."""
        if not self.enabled or not query:
            return []
        try:
            resp = self._get_service().search().list(
                part="snippet",
                q=query,
                maxResults=int(max_results),
                type="video",
            ).execute()
        except HttpError as exc:
            logger.warning("YouTube search failed query=%r status=%s", query, getattr(exc, "status_code", None))
            return []
        except Exception:
            logger.exception("YouTube search failed query=%r", query)
            return []

        ids = []
        items = resp.get("items") if isinstance(resp, dict) else None
        for item in items or []:
            if not isinstance(item, dict):
                continue
            item_id = item.get("id")
            video_id = item_id.get("videoId") if isinstance(item_id, dict) else None
            if isinstance(video_id, str) and video_id and video_id not in ids:
                ids.append(video_id)
        return ids[: int(max_results)]

    def fetch_details(self, ids: Iterable[str]) -> dict[str, Candidate]:
        """Fetch duration and title for ``ids`` in one batched ``videos.list`` call."""
        unique_ids = []
        for video_id in ids or []:
            if video_id and video_id not in unique_ids:
                unique_ids.append(video_id)
        if not self.enabled or not unique_ids:
            return {}
        try:
            resp = self._get_service().videos().list(
                part="contentDetails,snippet",
                id=",".join(unique_ids),
            ).execute()
        except HttpError as exc:
            logger.warning(
                "YouTube details lookup failed ids=%d status=%s",
                len(unique_ids),
                getattr(exc, "status_code", None),
            )
            return {}
        except Exception:
            logger.exception("YouTube details lookup failed ids=%d", len(unique_ids))
            return {}

        details = {}
        items = resp.get("items") if isinstance(resp, dict) else None
        for item in items or []:
            if not isinstance(item, dict):
                continue
            video_id = item.get("id")
            if not isinstance(video_id, str) or not video_id:
                continue
            duration_ms = parse_iso8601_duration_ms((item.get("contentDetails") or {}).get("duration"))
            if duration_ms is None:
                logger.debug("Skipping video without a parseable duration id=%s", video_id)
                continue
            title = (item.get("snippet") or {}).get("title") or ""
            details[video_id] = Candidate(external_id=video_id, title=str(title), duration_ms=duration_ms)
        return details

    def search_candidates(self, query: str, max_results: int = SEARCH_MAX_RESULTS) -> list[Candidate]:
        """Search ``query`` and enrich the hits, keeping search-result order."""
        ids = self.search(query, max_results)
        if not ids:
            return []
        details = self.fetch_details(ids)
        return [details[video_id] for video_id in ids if video_id in details]

    def candidates_for(
        self,
        request: SongRequest,
        max_results: int = SEARCH_MAX_RESULTS,
    ) -> tuple[list[Candidate], list[Candidate]]:
        """Return ``(artist_title, artist_title_lyrics)`` candidate lists."""
        return (
            self.search_candidates(request.search_query, max_results),
            self.search_candidates(request.lyrics_query, max_results),
        )
