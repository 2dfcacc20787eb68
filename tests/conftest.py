import sys
from pathlib import Path

import pytest


# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


class _FakeRequest:
    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error

    def execute(self):
        if self._error is not None:
            raise self._error
        return self._response


class _FakeResource:
    def __init__(self, handler):
        self._handler = handler

    def list(self, **kwargs):
        return self._handler(**kwargs)


class FakeYouTubeService:
    """In-memory stand-in for the ``youtube/v3`` discovery client.

    ``search_results`` maps a query string to video ids; ``videos`` maps a
    video id to ``(title, iso_duration)``. Queries listed in ``failing`` raise
    the given exception from ``execute()``.
    """

    def __init__(self, search_results=None, videos=None, failing=None, details_error=None):
        self.search_results = dict(search_results or {})
        self.videos_by_id = dict(videos or {})
        self.failing = dict(failing or {})
        self.details_error = details_error
        self.search_calls = []
        self.videos_calls = []

    @property
    def call_count(self):
        return len(self.search_calls) + len(self.videos_calls)

    def search(self):
        return _FakeResource(self._search_list)

    def videos(self):
        return _FakeResource(self._videos_list)

    def _search_list(self, **kwargs):
        self.search_calls.append(kwargs)
        query = kwargs.get("q")
        if query in self.failing:
            return _FakeRequest(error=self.failing[query])
        ids = self.search_results.get(query, [])[: kwargs.get("maxResults", 5)]
        return _FakeRequest({"items": [{"id": {"kind": "youtube#video", "videoId": vid}} for vid in ids]})

    def _videos_list(self, **kwargs):
        self.videos_calls.append(kwargs)
        # videos.list rejects maxResults when filtering by id.
        assert "maxResults" not in kwargs, "maxResults is not supported together with id"
        if self.details_error is not None:
            return _FakeRequest(error=self.details_error)
        items = []
        for vid in str(kwargs.get("id") or "").split(","):
            if vid not in self.videos_by_id:
                continue
            title, duration = self.videos_by_id[vid]
            items.append(
                {
                    "id": vid,
                    "snippet": {"title": title},
                    "contentDetails": {"duration": duration},
                }
            )
        return _FakeRequest({"items": items})


@pytest.fixture
def youtube_service_factory():
    return FakeYouTubeService
