"""
Impression Record — caller-owned frequency and sequencing state.

Tracks, per campaign, how often it was shown to a session and to a user
and when it was last shown, plus the per playlist+session cursor that
drives sequential and round-robin playlists.

Behavioral Contract:
- The orchestrator only reads from the record while selecting
- Writes happen after a display is committed (record_impression, cursor advance)
- The sequential cursor is a read-modify-write. get/set expose it
  explicitly (last writer wins); advance_sequence_index performs the
  whole step, atomically in the SQLite record.
"""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from notiproof_engine.models.clock import ensure_utc


class ImpressionRecord(Protocol):

    def get_session_count(self, campaign_id: str, session_id: str) -> int: ...

    def get_user_count(self, campaign_id: str, user_id: str) -> int: ...

    def get_last_impression_time(self, campaign_id: str, session_id: str) -> Optional[datetime]: ...

    def record_impression(
        self,
        campaign_id: str,
        session_id: str,
        user_id: str,
        timestamp: datetime,
        playlist_id: Optional[str] = None,
    ) -> None: ...

    def get_session_total(self, session_id: str, campaign_ids: Iterable[str]) -> int: ...

    def get_sequence_index(self, playlist_id: str, session_id: str) -> int: ...

    def set_sequence_index(self, playlist_id: str, session_id: str, index: int) -> None: ...

    def advance_sequence_index(self, playlist_id: str, session_id: str, length: int) -> int: ...

    def get_impression_counter(self, playlist_id: str, session_id: str) -> int: ...


class InMemoryImpressionRecord:
    """
    Dict-backed record for a single process.
    Concurrent writers to the same session race with last-writer-wins.
    """

    def __init__(self):
        self._session_counts: Dict[Tuple[str, str], int] = defaultdict(int)
        self._user_counts: Dict[Tuple[str, str], int] = defaultdict(int)
        self._last_shown: Dict[Tuple[str, str], datetime] = {}
        self._sequence: Dict[Tuple[str, str], int] = {}
        self._counters: Dict[Tuple[str, str], int] = defaultdict(int)

    def get_session_count(self, campaign_id: str, session_id: str) -> int:
        return self._session_counts.get((campaign_id, session_id), 0)

    def get_user_count(self, campaign_id: str, user_id: str) -> int:
        return self._user_counts.get((campaign_id, user_id), 0)

    def get_last_impression_time(self, campaign_id: str, session_id: str) -> Optional[datetime]:
        return self._last_shown.get((campaign_id, session_id))

    def record_impression(
        self,
        campaign_id: str,
        session_id: str,
        user_id: str,
        timestamp: datetime,
        playlist_id: Optional[str] = None,
    ) -> None:
        self._session_counts[(campaign_id, session_id)] += 1
        self._user_counts[(campaign_id, user_id)] += 1
        self._last_shown[(campaign_id, session_id)] = ensure_utc(timestamp)
        if playlist_id is not None:
            self._counters[(playlist_id, session_id)] += 1

    def get_session_total(self, session_id: str, campaign_ids: Iterable[str]) -> int:
        return sum(self.get_session_count(cid, session_id) for cid in campaign_ids)

    def get_sequence_index(self, playlist_id: str, session_id: str) -> int:
        return self._sequence.get((playlist_id, session_id), 0)

    def set_sequence_index(self, playlist_id: str, session_id: str, index: int) -> None:
        self._sequence[(playlist_id, session_id)] = index

    def advance_sequence_index(self, playlist_id: str, session_id: str, length: int) -> int:
        current = self.get_sequence_index(playlist_id, session_id)
        new_index = (current + 1) % length
        self.set_sequence_index(playlist_id, session_id, new_index)
        return new_index

    def get_impression_counter(self, playlist_id: str, session_id: str) -> int:
        return self._counters.get((playlist_id, session_id), 0)


class SQLiteImpressionRecord:
    """
    Persistent impression record.
    Prototype: SQLite. Production: the hosted Postgres impressions table.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the impression tables if they don't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS impressions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                campaign_id TEXT NOT NULL,
                session_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                playlist_id TEXT,
                shown_at TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_impressions_session
            ON impressions(campaign_id, session_id)
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_impressions_user
            ON impressions(campaign_id, user_id)
        """)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS playlist_cursors (
                playlist_id TEXT NOT NULL,
                session_id TEXT NOT NULL,
                sequence_index INTEGER NOT NULL DEFAULT 0,
                impression_counter INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (playlist_id, session_id)
            )
        """)
        self._conn.commit()

    def get_session_count(self, campaign_id: str, session_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM impressions WHERE campaign_id = ? AND session_id = ?",
            (campaign_id, session_id),
        ).fetchone()
        return row[0]

    def get_user_count(self, campaign_id: str, user_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM impressions WHERE campaign_id = ? AND user_id = ?",
            (campaign_id, user_id),
        ).fetchone()
        return row[0]

    def get_last_impression_time(self, campaign_id: str, session_id: str) -> Optional[datetime]:
        row = self._conn.execute(
            "SELECT MAX(shown_at) FROM impressions WHERE campaign_id = ? AND session_id = ?",
            (campaign_id, session_id),
        ).fetchone()
        if row[0] is None:
            return None
        return ensure_utc(datetime.fromisoformat(row[0]))

    def record_impression(
        self,
        campaign_id: str,
        session_id: str,
        user_id: str,
        timestamp: datetime,
        playlist_id: Optional[str] = None,
    ) -> None:
        with self._conn:
            self._conn.execute(
                """INSERT INTO impressions
                   (campaign_id, session_id, user_id, playlist_id, shown_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (campaign_id, session_id, user_id, playlist_id,
                 ensure_utc(timestamp).isoformat(timespec="microseconds")),
            )
            if playlist_id is not None:
                self._conn.execute(
                    """INSERT INTO playlist_cursors
                       (playlist_id, session_id, sequence_index, impression_counter)
                       VALUES (?, ?, 0, 1)
                       ON CONFLICT(playlist_id, session_id)
                       DO UPDATE SET impression_counter = impression_counter + 1""",
                    (playlist_id, session_id),
                )

    def get_session_total(self, session_id: str, campaign_ids: Iterable[str]) -> int:
        ids: List[str] = list(campaign_ids)
        if not ids:
            return 0
        placeholders = ",".join("?" for _ in ids)
        row = self._conn.execute(
            f"SELECT COUNT(*) FROM impressions "
            f"WHERE session_id = ? AND campaign_id IN ({placeholders})",
            (session_id, *ids),
        ).fetchone()
        return row[0]

    def get_sequence_index(self, playlist_id: str, session_id: str) -> int:
        row = self._conn.execute(
            "SELECT sequence_index FROM playlist_cursors WHERE playlist_id = ? AND session_id = ?",
            (playlist_id, session_id),
        ).fetchone()
        return row["sequence_index"] if row else 0

    def set_sequence_index(self, playlist_id: str, session_id: str, index: int) -> None:
        with self._conn:
            self._conn.execute(
                """INSERT INTO playlist_cursors (playlist_id, session_id, sequence_index)
                   VALUES (?, ?, ?)
                   ON CONFLICT(playlist_id, session_id)
                   DO UPDATE SET sequence_index = excluded.sequence_index""",
                (playlist_id, session_id, index),
            )

    def advance_sequence_index(self, playlist_id: str, session_id: str, length: int) -> int:
        """Single-statement increment, so concurrent advances never lose a step."""
        with self._conn:
            self._conn.execute(
                """INSERT INTO playlist_cursors (playlist_id, session_id, sequence_index)
                   VALUES (?, ?, ?)
                   ON CONFLICT(playlist_id, session_id)
                   DO UPDATE SET sequence_index = (sequence_index + 1) % ?""",
                (playlist_id, session_id, 1 % length, length),
            )
        return self.get_sequence_index(playlist_id, session_id)

    def get_impression_counter(self, playlist_id: str, session_id: str) -> int:
        row = self._conn.execute(
            "SELECT impression_counter FROM playlist_cursors WHERE playlist_id = ? AND session_id = ?",
            (playlist_id, session_id),
        ).fetchone()
        return row["impression_counter"] if row else 0

    def close(self) -> None:
        self._conn.close()
