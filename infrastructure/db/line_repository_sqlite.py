from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Optional

from domain.models import Line, LineStatus
from domain.repositories import LineRepository

_COLUMNS = (
    "id, question, options, symbols, status, winning_option, created_by, "
    "created_at, locked_at, resolved_at, message_ref"
)


def _to_text(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_text(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SqliteLineRepository(LineRepository):
    """
    SQLite-backed implementation of `LineRepository`.

    Options and symbols are stored as JSON arrays in the same row so they
    can never drift out of alignment.
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
                CREATE TABLE IF NOT EXISTS betting_lines (
                    id TEXT PRIMARY KEY,
                    question TEXT NOT NULL,
                    options TEXT NOT NULL,
                    symbols TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'open',
                    winning_option TEXT,
                    created_by TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    locked_at TEXT,
                    resolved_at TEXT,
                    message_ref TEXT
                )
                """
            )
            cur.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_betting_lines_message_ref
                ON betting_lines (message_ref)
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Line:
        return Line(
            id=str(row[0]),
            question=row[1],
            options=json.loads(row[2]),
            symbols=json.loads(row[3]),
            status=LineStatus(row[4]),
            winning_option=row[5],
            created_by=row[6],
            created_at=_from_text(row[7]),
            locked_at=_from_text(row[8]),
            resolved_at=_from_text(row[9]),
            message_ref=row[10],
        )

    def _fetch_one(self, where: str, value: str) -> Optional[Line]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_COLUMNS} FROM betting_lines WHERE {where} = ?", (value,))
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def get_line(self, line_id: str) -> Optional[Line]:
        return self._fetch_one("id", line_id)

    def find_by_message_ref(self, message_ref: str) -> Optional[Line]:
        return self._fetch_one("message_ref", message_ref)

    def add_line(self, line: Line) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO betting_lines ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    line.id,
                    line.question,
                    json.dumps(line.options),
                    json.dumps(line.symbols),
                    line.status.value,
                    line.winning_option,
                    line.created_by,
                    _to_text(line.created_at),
                    _to_text(line.locked_at),
                    _to_text(line.resolved_at),
                    line.message_ref,
                ),
            )
            conn.commit()

    def save_line(self, line: Line) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE betting_lines
                SET status = ?, winning_option = ?, locked_at = ?,
                    resolved_at = ?, message_ref = ?
                WHERE id = ?
                """,
                (
                    line.status.value,
                    line.winning_option,
                    _to_text(line.locked_at),
                    _to_text(line.resolved_at),
                    line.message_ref,
                    line.id,
                ),
            )
            conn.commit()
