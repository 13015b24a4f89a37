from __future__ import annotations

import logging
from typing import List

from domain.errors import InsufficientBalance, MemberNotFound
from domain.models import Member, MemberStat
from domain.repositories import MemberRepository

logger = logging.getLogger(__name__)


class Ledger:
    """
    The only component that changes member balances and stats.

    Balances never go negative: `debit` checks and subtracts in one
    repository call, so a stale read cannot let two stakes spend the
    same unit.
    """

    def __init__(self, member_repo: MemberRepository, starting_balance: int) -> None:
        self._members = member_repo
        self._starting_balance = starting_balance

    @property
    def starting_balance(self) -> int:
        return self._starting_balance

    def get_member(self, member_id: str) -> Member:
        member = self._members.get_member(member_id)
        if member is None:
            raise MemberNotFound()
        return member

    def ensure_member(self, member_id: str, display_name: str) -> Member:
        """Return the member, creating it with the starting balance on first contact."""

        member = self._members.get_member(member_id)
        if member is not None:
            return member

        self._members.add_member(
            Member(
                id=member_id,
                display_name=display_name or member_id,
                balance=self._starting_balance,
            )
        )
        logger.info("Created member %s with balance %d", member_id, self._starting_balance)
        return self.get_member(member_id)

    def debit(self, member_id: str, amount: int) -> None:
        _check_amount(amount)
        if not self._members.try_debit(member_id, amount):
            # Distinguish an unknown member from a short balance.
            self.get_member(member_id)
            raise InsufficientBalance()

    def credit(self, member_id: str, amount: int) -> None:
        _check_amount(amount)
        if amount == 0:
            return
        self.get_member(member_id)
        self._members.credit(member_id, amount)

    def adjust_stat(self, member_id: str, stat: MemberStat, delta: int) -> None:
        if not isinstance(stat, MemberStat):
            raise ValueError(f"Unknown member stat: {stat!r}")
        if delta == 0:
            return
        self._members.adjust_stat(member_id, stat, delta)

    def leaderboard(self, limit: int) -> List[Member]:
        return self._members.get_leaderboard(limit)


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise ValueError("Ledger amounts must not be negative.")
