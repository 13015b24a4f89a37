from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional, Tuple

from domain.models import Line, Member, MemberStat, Stake
from domain.repositories import LineRepository, MemberRepository, StakeRepository


class InMemoryMemberRepository(MemberRepository):
    """Dict-backed members; returns copies so callers cannot bypass the ledger."""

    def __init__(self) -> None:
        self._members: Dict[str, Member] = {}
        self._lock = threading.Lock()

    def get_member(self, member_id: str) -> Optional[Member]:
        with self._lock:
            member = self._members.get(member_id)
            return copy.copy(member) if member else None

    def add_member(self, member: Member) -> None:
        with self._lock:
            self._members.setdefault(member.id, copy.copy(member))

    def get_leaderboard(self, limit: int) -> List[Member]:
        with self._lock:
            snapshot = [copy.copy(m) for m in self._members.values()]
        snapshot.sort(key=lambda m: (m.balance, m.total_winnings), reverse=True)
        return snapshot[:limit]

    def try_debit(self, member_id: str, amount: int) -> bool:
        with self._lock:
            member = self._members.get(member_id)
            if member is None or member.balance < amount:
                return False
            member.balance -= amount
            return True

    def credit(self, member_id: str, amount: int) -> None:
        with self._lock:
            self._members[member_id].balance += amount

    def adjust_stat(self, member_id: str, stat: MemberStat, delta: int) -> None:
        with self._lock:
            member = self._members[member_id]
            setattr(member, stat.value, getattr(member, stat.value) + delta)


class InMemoryLineRepository(LineRepository):
    def __init__(self) -> None:
        self._lines: Dict[str, Line] = {}
        self._lock = threading.Lock()

    def get_line(self, line_id: str) -> Optional[Line]:
        with self._lock:
            line = self._lines.get(line_id)
            return copy.deepcopy(line) if line else None

    def find_by_message_ref(self, message_ref: str) -> Optional[Line]:
        with self._lock:
            for line in self._lines.values():
                if line.message_ref == message_ref:
                    return copy.deepcopy(line)
        return None

    def add_line(self, line: Line) -> None:
        with self._lock:
            if line.id in self._lines:
                raise ValueError(f"Line {line.id} already exists.")
            self._lines[line.id] = copy.deepcopy(line)

    def save_line(self, line: Line) -> None:
        with self._lock:
            stored = self._lines[line.id]
            stored.status = line.status
            stored.winning_option = line.winning_option
            stored.locked_at = line.locked_at
            stored.resolved_at = line.resolved_at
            stored.message_ref = line.message_ref


class InMemoryStakeRepository(StakeRepository):
    """
    Stakes keyed by (line, member).

    Readers work on a snapshot taken under the lock, so rendering one line
    is safe while stakes on another line change.
    """

    def __init__(self, member_repo: Optional[MemberRepository] = None) -> None:
        self._stakes: Dict[Tuple[str, str], Stake] = {}
        self._member_repo = member_repo
        self._lock = threading.Lock()

    def _with_name(self, stake: Stake) -> Stake:
        if self._member_repo is not None:
            member = self._member_repo.get_member(stake.member_id)
            if member is not None:
                stake.display_name = member.display_name
        return stake

    def get_stake(self, line_id: str, member_id: str) -> Optional[Stake]:
        with self._lock:
            stake = self._stakes.get((line_id, member_id))
            stake = copy.copy(stake) if stake else None
        return self._with_name(stake) if stake else None

    def get_stakes_for_line(self, line_id: str) -> List[Stake]:
        with self._lock:
            stakes = [copy.copy(s) for (lid, _), s in self._stakes.items() if lid == line_id]
        stakes.sort(key=lambda s: s.created_at)
        return [self._with_name(s) for s in stakes]

    def add_stake(self, stake: Stake) -> None:
        key = (stake.line_id, stake.member_id)
        with self._lock:
            if key in self._stakes:
                raise ValueError(
                    f"Member {stake.member_id} already has a stake on {stake.line_id}."
                )
            self._stakes[key] = copy.copy(stake)

    def remove_stake(self, stake_id: str) -> None:
        with self._lock:
            for key, stake in list(self._stakes.items()):
                if stake.id == stake_id:
                    del self._stakes[key]
                    return
