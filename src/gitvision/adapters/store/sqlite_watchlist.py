# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import Iterable

from ...domain.errors import PersistenceError

DDL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS watched (
    repo TEXT NOT NULL,
    label TEXT NOT NULL,
    added_at INTEGER NOT NULL,
    PRIMARY KEY (repo, label)
);

CREATE INDEX IF NOT EXISTS idx_watched_repo ON watched(repo, added_at);
"""


class SQLiteWatchList:
    """
    Persists watched commit labels per repository root between sessions.

    - Uses one-shot `conn.execute(...)` calls so cursors are short-lived.
    - Implements context manager support (`with SQLiteWatchList(...) as wl:`).
    - Labels come back in the order they were first added.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        try:
            self._conn = sqlite3.connect(self._db_path, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._init_schema()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open watch list {self._db_path}: {e}") from e

    # --- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        if getattr(self, "_conn", None) is not None:
            self._conn.close()
            self._conn = None  # type: ignore[assignment]

    def __enter__(self) -> SQLiteWatchList:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- public API ---------------------------------------------------------

    def add(self, repo: str | Path, labels: Iterable[str]) -> int:
        """Insert labels not already watched; returns how many were new."""
        repo_key = _repo_key(repo)
        now = time.time_ns()
        added = 0
        for offset, label in enumerate(labels):
            # offset keeps insertion order stable within one call
            cur = self._conn.execute(
                "INSERT OR IGNORE INTO watched (repo, label, added_at) VALUES (?, ?, ?)",
                (repo_key, label, now + offset),
            )
            added += cur.rowcount
        return added

    def remove(self, repo: str | Path, labels: Iterable[str]) -> int:
        repo_key = _repo_key(repo)
        removed = 0
        for label in labels:
            cur = self._conn.execute(
                "DELETE FROM watched WHERE repo=? AND label=?", (repo_key, label)
            )
            removed += cur.rowcount
        return removed

    def labels(self, repo: str | Path) -> list[str]:
        cur = self._conn.execute(
            "SELECT label FROM watched WHERE repo=? ORDER BY added_at ASC, label ASC",
            (_repo_key(repo),),
        )
        return [row["label"] for row in cur.fetchall()]

    def clear(self, repo: str | Path) -> int:
        cur = self._conn.execute("DELETE FROM watched WHERE repo=?", (_repo_key(repo),))
        return cur.rowcount

    # --- helpers ------------------------------------------------------------

    def _init_schema(self) -> None:
        self._conn.executescript(DDL)


def _repo_key(repo: str | Path) -> str:
    return Path(repo).resolve().as_posix()
