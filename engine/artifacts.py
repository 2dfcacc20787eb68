"""Transient file bookkeeping for a single acquisition."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

logger = logging.getLogger(__name__)


class ArtifactKind(str, Enum):
    RAW_DOWNLOAD = "raw_download"
    PARTIAL_DOWNLOAD = "partial_download"
    CONVERTED_AUDIO = "converted_audio"
    DOWNLOAD_LOG = "download_log"
    CONVERT_LOG = "convert_log"


LOG_KINDS = frozenset({ArtifactKind.DOWNLOAD_LOG, ArtifactKind.CONVERT_LOG})


@dataclass(frozen=True)
class TransientArtifact:
    path: Path
    kind: ArtifactKind

    def exists(self) -> bool:
        return self.path.is_file()


def guarantee_delete(path) -> bool:
    """Delete ``path`` if present. Missing files are not an error.

    Returns ``False`` only when the file exists and could not be removed.
    """
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return True
    except OSError as exc:
        logger.warning("Failed to delete transient file path=%s: %s", path, exc)
        return False
    return True


def use_then_delete(path, use: Callable[[Path], None]) -> bool:
    """Call ``use(path)`` when the file exists, then delete it whatever happened.

    Returns whether ``use`` was called and completed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        return False
    try:
        use(file_path)
        return True
    finally:
        guarantee_delete(file_path)


class ArtifactScope:
    """Ordered release list of transient paths owned by one invocation.

    Paths are registered before anything writes to them; leaving the ``with``
    block deletes every registered path that still exists, on every exit path.
    """

    def __init__(self) -> None:
        self._artifacts: list[TransientArtifact] = []
        self._released = False

    def register(self, path, kind: ArtifactKind) -> TransientArtifact:
        if self._released:
            raise RuntimeError("artifact scope already released")
        artifact = TransientArtifact(Path(path), ArtifactKind(kind))
        self._artifacts.append(artifact)
        return artifact

    def existing(self, kinds: Iterable[ArtifactKind] | None = None) -> list[TransientArtifact]:
        wanted = set(kinds) if kinds is not None else None
        return [
            artifact
            for artifact in self._artifacts
            if (wanted is None or artifact.kind in wanted) and artifact.exists()
        ]

    def release(self) -> list[Path]:
        """Delete all registered paths; returns the ones that could not be removed."""
        leftovers = []
        for artifact in self._artifacts:
            if not guarantee_delete(artifact.path):
                leftovers.append(artifact.path)
        self._released = True
        return leftovers

    def __enter__(self) -> ArtifactScope:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        leftovers = self.release()
        if leftovers:
            logger.warning("Transient files left behind: %s", ", ".join(str(p) for p in leftovers))
        return False
