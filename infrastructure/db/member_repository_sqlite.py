from __future__ import annotations

import sqlite3
from typing import List, Optional

from domain.models import Member, MemberStat
from domain.repositories import MemberRepository

# Closed mapping from stat to column; never interpolate caller input.
_STAT_COLUMNS = {
    MemberStat.STAKE_COUNT: "total_stakes",
    MemberStat.WINNINGS: "total_winnings",
}

_COLUMNS = "id, display_name, balance, total_stakes, total_winnings"


class SqliteMemberRepository(MemberRepository):
    """
    SQLite-backed implementation of `MemberRepository`.

    This repository owns the `members` table and maps rows to the `Member`
    domain model. It is self-initialising: the table is created if needed.
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
                CREATE TABLE IF NOT EXISTS members (
                    id TEXT PRIMARY KEY,
                    display_name TEXT NOT NULL,
                    balance INTEGER NOT NULL CHECK (balance >= 0),
                    total_stakes INTEGER NOT NULL DEFAULT 0,
                    total_winnings INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Member:
        return Member(
            id=str(row[0]),
            display_name=row[1],
            balance=int(row[2]),
            total_stakes=int(row[3]),
            total_winnings=int(row[4]),
        )

    def get_member(self, member_id: str) -> Optional[Member]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_COLUMNS} FROM members WHERE id = ?", (member_id,))
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def add_member(self, member: Member) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT OR IGNORE INTO members
                    (id, display_name, balance, total_stakes, total_winnings)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    member.id,
                    member.display_name,
                    member.balance,
                    member.total_stakes,
                    member.total_winnings,
                ),
            )
            conn.commit()

    def get_leaderboard(self, limit: int) -> List[Member]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM members
                ORDER BY balance DESC, total_winnings DESC
                LIMIT ?
                """,
                (limit,),
            )
            return [self._to_domain(row) for row in cur.fetchall()]

    def try_debit(self, member_id: str, amount: int) -> bool:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE members
                SET balance = balance - ?
                WHERE id = ? AND balance >= ?
                """,
                (amount, member_id, amount),
            )
            conn.commit()
            return cur.rowcount == 1

    def credit(self, member_id: str, amount: int) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "UPDATE members SET balance = balance + ? WHERE id = ?",
                (amount, member_id),
            )
            conn.commit()

    def adjust_stat(self, member_id: str, stat: MemberStat, delta: int) -> None:
        column = _STAT_COLUMNS[stat]
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE members SET {column} = {column} + ? WHERE id = ?",
                (delta, member_id),
            )
            conn.commit()
