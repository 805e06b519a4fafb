"""
Local store hook.

The content-addressable store itself belongs to the execution engine. This
layer only creates its on-disk footprint (``db/chain.db``) and keeps the
DNA hash recorded there once a chain has been generated.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import STORE_FILE_NAME
from .errors import StoreUnreadable

DNA_HASH_KEY = "dna_hash"


class ChainStore:
    """Thin wrapper over the sqlite file under an instance's db directory."""

    def __init__(self, db_dir: Path):
        self.db_dir = Path(db_dir)
        self.db_path = self.db_dir / STORE_FILE_NAME

    def exists(self) -> bool:
        return self.db_path.is_file()

    def init(self) -> None:
        self.db_dir.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _set(self, key: str, value: str) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                "INSERT OR REPLACE INTO meta (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def _get(self, key: str) -> Optional[str]:
        if not self.exists():
            return None
        conn = sqlite3.connect(self.db_path)
        try:
            row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        except sqlite3.OperationalError:
            # store created by something other than init(): nothing recorded
            return None
        except sqlite3.DatabaseError as exc:
            raise StoreUnreadable(self.db_path, str(exc)) from exc
        finally:
            conn.close()
        return row[0] if row else None

    def record_dna_hash(self, value: str) -> None:
        self._set(DNA_HASH_KEY, value)

    def dna_hash(self) -> Optional[str]:
        return self._get(DNA_HASH_KEY)
