"""Domain types shared by the audio acquisition pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from db.asset_store import StoredAsset


def _require_non_empty_str(field: str, value: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field} must be a string")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field} must be a non-empty string")
    return cleaned


def _require_safe_id(value: str) -> str:
    # The id is embedded in transient and stored file names.
    cleaned = _require_non_empty_str("id", value)
    if "/" in cleaned or "\\" in cleaned or ".." in cleaned:
        raise ValueError(f"id must not contain path separators or '..': {value!r}")
    return cleaned


@dataclass(frozen=True)
class SongRequest:
    """Song to resolve: identity, display fields and the target duration."""

    id: str
    artist: str
    title: str
    duration_ms: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _require_safe_id(self.id))
        object.__setattr__(self, "artist", _require_non_empty_str("artist", self.artist))
        object.__setattr__(self, "title", _require_non_empty_str("title", self.title))
        if isinstance(self.duration_ms, bool) or not isinstance(self.duration_ms, int):
            raise TypeError("duration_ms must be an integer")
        if self.duration_ms < 0:
            raise ValueError("duration_ms must be >= 0")

    @property
    def search_query(self) -> str:
        return f"{self.artist} - {self.title}"

    @property
    def lyrics_query(self) -> str:
        return f"{self.artist} - {self.title} lyrics"


@dataclass(frozen=True)
class Candidate:
    external_id: str
    title: str
    duration_ms: int

    @property
    def url(self) -> str:
        return f"https://youtu.be/{self.external_id}"


@dataclass(frozen=True)
class ClientInfo:
    """Requesting client context carried into log lines and storage calls."""

    user_uid: str | None = None
    address: str | None = None

    @property
    def tag(self) -> str:
        return self.user_uid or "-"


def client_tag(client_info: ClientInfo | None) -> str:
    if client_info is None:
        return "-"
    return client_info.tag


class FailureReason(str, Enum):
    NO_API_KEY = "no_api_key"
    NO_CANDIDATE_FOUND = "no_candidate_found"
    DOWNLOAD_PRODUCED_NOTHING = "download_produced_nothing"
    CONVERTER_UNAVAILABLE = "converter_unavailable"
    CONVERSION_PRODUCED_NOTHING = "conversion_produced_nothing"
    CANCELLED = "cancelled"
    STORE_FAILED = "store_failed"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class AcquisitionResult:
    """Outcome of one pipeline invocation.

    Exactly one of ``asset`` and ``reason`` is set. ``candidate`` is the
    selected video when ranking got that far.
    """

    asset: StoredAsset | None = None
    reason: FailureReason | None = None
    candidate: Candidate | None = None

    @property
    def ok(self) -> bool:
        return self.asset is not None

    @classmethod
    def succeeded(cls, asset: StoredAsset, candidate: Candidate) -> AcquisitionResult:
        return cls(asset=asset, reason=None, candidate=candidate)

    @classmethod
    def failed(cls, reason: FailureReason, candidate: Candidate | None = None) -> AcquisitionResult:
        return cls(asset=None, reason=reason, candidate=candidate)
