from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from domain.models import Stake
from domain.repositories import StakeRepository

_SELECT = """
    SELECT s.id, s.member_id, s.line_id, s.option, s.amount, s.created_at,
           COALESCE(m.display_name, s.member_id)
    FROM stakes s
    LEFT JOIN members m ON m.id = s.member_id
"""


class SqliteStakeRepository(StakeRepository):
    """
    SQLite-backed implementation of `StakeRepository`.

    A unique index on (line_id, member_id) backs the one-stake-per-member
    rule at the storage level as well.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS stakes (
                    id TEXT PRIMARY KEY,
                    member_id TEXT NOT NULL,
                    line_id TEXT NOT NULL,
                    option TEXT NOT NULL,
                    amount INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_stakes_line_member
                ON stakes (line_id, member_id)
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Stake:
        return Stake(
            id=str(row[0]),
            member_id=row[1],
            line_id=row[2],
            option=row[3],
            amount=int(row[4]),
            created_at=datetime.fromisoformat(row[5]),
            display_name=row[6],
        )

    def get_stake(self, line_id: str, member_id: str) -> Optional[Stake]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                _SELECT + " WHERE s.line_id = ? AND s.member_id = ?",
                (line_id, member_id),
            )
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def get_stakes_for_line(self, line_id: str) -> List[Stake]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(_SELECT + " WHERE s.line_id = ? ORDER BY s.created_at", (line_id,))
            return [self._to_domain(row) for row in cur.fetchall()]

    def add_stake(self, stake: Stake) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO stakes (id, member_id, line_id, option, amount, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    stake.id,
                    stake.member_id,
                    stake.line_id,
                    stake.option,
                    stake.amount,
                    stake.created_at.isoformat(),
                ),
            )
            conn.commit()

    def remove_stake(self, stake_id: str) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM stakes WHERE id = ?", (stake_id,))
            conn.commit()
