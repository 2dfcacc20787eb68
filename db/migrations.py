"""SQLite migrations for the stored asset index."""

from __future__ import annotations

import sqlite3


def ensure_stored_assets_table(conn: sqlite3.Connection) -> None:
    """Ensure the stored asset table and indexes exist."""
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS stored_assets (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            asset_key TEXT NOT NULL,
            scope TEXT NOT NULL,
            mime_type TEXT NOT NULL,
            file_path TEXT NOT NULL,
            size_bytes INTEGER NOT NULL,
            client_uid TEXT,
            stored_at TEXT NOT NULL,
            UNIQUE (asset_key, scope)
        )
        """
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS idx_stored_assets_stored_at "
        "ON stored_assets (stored_at)"
    )
    conn.commit()
