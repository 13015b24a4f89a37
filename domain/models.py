from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class LineStatus(str, Enum):
    OPEN = "open"
    LOCKED = "locked"
    RESOLVED = "resolved"


class MemberStat(Enum):
    """Closed set of cumulative member counters that may be adjusted."""

    STAKE_COUNT = "total_stakes"
    WINNINGS = "total_winnings"


@dataclass
class Member:
    """
    A chat member taking part in the betting pool.

    `id` is an opaque external identity (e.g. ``discord:1234``); the
    domain never interprets it. Balances and stats are only mutated
    through the `Ledger`.
    """

    id: str
    display_name: str
    balance: int
    total_stakes: int = 0
    total_winnings: int = 0


@dataclass
class Line:
    """
    A single betting question with discrete options.

    `options` and `symbols` are index-aligned: ``symbols[i]`` is the
    signal that selects ``options[i]``. Both are fixed at creation.
    """

    id: str
    question: str
    options: List[str]
    symbols: List[str]
    created_by: str
    created_at: datetime
    status: LineStatus = LineStatus.OPEN
    winning_option: Optional[str] = None
    locked_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    message_ref: Optional[str] = None

    def option_index(self, option: str) -> Optional[int]:
        """Exact match first, then case-insensitive."""

        if option in self.options:
            return self.options.index(option)
        lowered = option.strip().lower()
        for index, candidate in enumerate(self.options):
            if candidate.lower() == lowered:
                return index
        return None


@dataclass
class Stake:
    id: str
    member_id: str
    line_id: str
    option: str
    amount: int
    created_at: datetime
    display_name: str = ""


@dataclass
class Payout:
    member_id: str
    display_name: str
    amount: int
    stake: int


@dataclass
class PayoutResult:
    """
    Outcome of settling a resolved line.

    Invariant: ``sum(p.amount for p in payouts) + remainder == pot``.
    `remainder` is what the house keeps, which is the whole pot when
    nobody backed the winning option.
    """

    winning_option: str
    pot: int
    per_winner: int
    remainder: int
    payouts: List[Payout] = field(default_factory=list)
    losers: List[Stake] = field(default_factory=list)
    message: str = ""


@dataclass
class LineSummary:
    """Aggregate view of the stakes currently held on a line."""

    stakes_by_option: Dict[str, List[Stake]]
    total_stakes: int
    total_pot: int

    def count_for(self, option: str) -> int:
        return len(self.stakes_by_option.get(option, []))
