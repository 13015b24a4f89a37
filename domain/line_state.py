from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Sequence

from .errors import AlreadyResolved, InvalidOptions, NotOpen, UnknownOption
from .models import Line, LineStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_line_id() -> str:
    return uuid.uuid4().hex[:8]


class LineStateMachine:
    """
    Owns the lifecycle of a betting line: ``open -> locked -> resolved``.

    Transitions are one-directional. An operator may also resolve a line
    that is still open, skipping the separate lock step.

    The state machine only flips status and timestamps. Moving money on
    resolution is the caller's job, and the `AlreadyResolved` guard here
    is what keeps a payout from being applied twice.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = new_line_id,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory

    def create(
        self,
        question: str,
        options: Sequence[str],
        symbols: Sequence[str],
        created_by: str,
    ) -> Line:
        cleaned = [o.strip() for o in options]
        if len(cleaned) < 2 or any(not o for o in cleaned):
            raise InvalidOptions()
        if len({o.lower() for o in cleaned}) != len(cleaned):
            raise InvalidOptions("Options must be unique.")
        if len(symbols) != len(cleaned):
            raise InvalidOptions("Every option needs exactly one symbol.")
        if not question.strip():
            raise InvalidOptions("A betting line needs a question.")

        return Line(
            id=self._id_factory(),
            question=question.strip(),
            options=cleaned,
            symbols=list(symbols),
            created_by=created_by,
            created_at=self._clock(),
        )

    def lock(self, line: Line) -> Line:
        if line.status != LineStatus.OPEN:
            raise NotOpen()
        line.status = LineStatus.LOCKED
        line.locked_at = self._clock()
        return line

    def resolve(self, line: Line, winning_option: str) -> Line:
        if line.status == LineStatus.RESOLVED:
            raise AlreadyResolved()

        index = line.option_index(winning_option)
        if index is None:
            raise UnknownOption(
                f"Invalid winning option. Must be one of: {', '.join(line.options)}"
            )

        line.status = LineStatus.RESOLVED
        line.winning_option = line.options[index]
        line.resolved_at = self._clock()
        return line

    @staticmethod
    def can_accept_stake(line: Line) -> bool:
        return line.status == LineStatus.OPEN
