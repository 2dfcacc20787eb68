"""Storage gateway interface and a local, SQLite-indexed implementation."""

from __future__ import annotations

import os
import shutil
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from db.migrations import ensure_stored_assets_table


if TYPE_CHECKING:
    from engine.types import ClientInfo


class StorageScope(str, Enum):
    AUDIO = "audio"
    LOG = "log"


@dataclass(frozen=True)
class StoredAsset:
    key: str
    scope: StorageScope
    mime_type: str
    path: Path
    size_bytes: int


class StorageGateway(Protocol):
    def store(
        self,
        key: str,
        scope: StorageScope,
        source_path: Path,
        mime_type: str,
        client_info: ClientInfo | None = None,
    ) -> None:
        """Durably store the file at ``source_path`` under ``key``."""

    def provide(
        self,
        key: str,
        scope: StorageScope,
        client_info: ClientInfo | None = None,
    ) -> StoredAsset | None:
        """Return the stored asset for ``key`` or ``None`` when absent."""


def _is_within(path: Path, base_dir: Path) -> bool:
    real = os.path.realpath(path)
    base = os.path.realpath(base_dir)
    return os.path.commonpath([real, base]) == base


def _validate_key(key: str) -> str:
    cleaned = (key or "").strip()
    if not cleaned:
        raise ValueError("key is required")
    if "/" in cleaned or "\\" in cleaned or cleaned in (".", ".."):
        raise ValueError(f"key must be a bare file name: {key!r}")
    return cleaned


class LocalAssetStore:
    """Store blobs under ``root_dir/<scope>/<key>`` and index them in SQLite.

    Re-storing a key replaces both the file and its index row.
    """

    def __init__(self, root_dir, db_path) -> None:
        self.root_dir = Path(root_dir)
        self.db_path = str(db_path)
        self.root_dir.mkdir(parents=True, exist_ok=True)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30)
        conn.row_factory = sqlite3.Row
        ensure_stored_assets_table(conn)
        return conn

    def _target_path(self, key: str, scope: StorageScope) -> Path:
        scope_dir = self.root_dir / StorageScope(scope).value
        target = scope_dir / _validate_key(key)
        if not _is_within(target, scope_dir):
            raise ValueError(f"key resolves outside storage scope: {key!r}")
        return target

    def store(self, key, scope, source_path, mime_type, client_info=None) -> None:
        scope = StorageScope(scope)
        target = self._target_path(key, scope)
        target.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.partial")
        try:
            shutil.copyfile(source_path, tmp_path)
            os.replace(tmp_path, target)
        except BaseException:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            raise

        size_bytes = target.stat().st_size
        stored_at = datetime.now(timezone.utc).isoformat()
        client_uid = getattr(client_info, "user_uid", None)

        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO stored_assets (asset_key, scope, mime_type, file_path, size_bytes, client_uid, stored_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (asset_key, scope) DO UPDATE SET
                    mime_type=excluded.mime_type,
                    file_path=excluded.file_path,
                    size_bytes=excluded.size_bytes,
                    client_uid=excluded.client_uid,
                    stored_at=excluded.stored_at
                """,
                (target.name, scope.value, mime_type, str(target), size_bytes, client_uid, stored_at),
            )
            conn.commit()
        finally:
            conn.close()

    def provide(self, key, scope, client_info=None) -> StoredAsset | None:
        scope = StorageScope(scope)
        try:
            asset_key = _validate_key(key)
        except ValueError:
            return None

        conn = self._connect()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT asset_key, scope, mime_type, file_path, size_bytes
                FROM stored_assets
                WHERE asset_key=? AND scope=?
                LIMIT 1
                """,
                (asset_key, scope.value),
            )
            row = cur.fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        path = Path(row["file_path"])
        if not path.is_file():
            return None
        return StoredAsset(
            key=str(row["asset_key"]),
            scope=StorageScope(row["scope"]),
            mime_type=str(row["mime_type"]),
            path=path,
            size_bytes=int(row["size_bytes"]),
        )
