from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from application.ledger import Ledger
from domain.emoji_codec import EmojiCodec
from domain.errors import DuplicateStake, InsufficientBalance, LineNotOpen
from domain.line_state import LineStateMachine
from domain.models import Line, Member, MemberStat, Stake
from domain.repositories import StakeRepository

logger = logging.getLogger(__name__)


class SignalOutcome(str, Enum):
    PLACED = "placed"
    SWITCHED = "switched"
    WITHDRAWN = "withdrawn"
    IGNORED = "ignored"


@dataclass(frozen=True)
class SignalResult:
    outcome: SignalOutcome
    option: Optional[str] = None
    previous_option: Optional[str] = None
    stake: Optional[Stake] = None

    @property
    def changed(self) -> bool:
        return self.outcome != SignalOutcome.IGNORED


IGNORED = SignalResult(SignalOutcome.IGNORED)


class StakeReconciler:
    """
    Turns signal add/remove events into at most one stake per (member, line).

    Each call is a read-check-act sequence over the line, the member's
    balance and the existing stake. Callers must hold the line's lock
    (see `application.locks.LineLocks`) for the duration of the call.
    """

    def __init__(
        self,
        ledger: Ledger,
        stake_repo: StakeRepository,
        codec: EmojiCodec,
        state_machine: LineStateMachine,
        stake_unit: int,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._ledger = ledger
        self._stakes = stake_repo
        self._codec = codec
        self._state = state_machine
        self._unit = stake_unit
        self._clock = clock

    def on_signal_added(self, member: Member, line: Line, symbol: str) -> SignalResult:
        index = self._codec.decode(symbol, line.symbols)
        if index is None:
            return IGNORED
        if not self._state.can_accept_stake(line):
            raise LineNotOpen()

        option = line.options[index]
        existing = self._stakes.get_stake(line.id, member.id)
        if existing is not None and existing.option == option:
            raise DuplicateStake()

        # The units already held by a stake on another option count toward the balance.
        balance = self._ledger.get_member(member.id).balance
        refundable = existing.amount if existing is not None else 0
        if balance + refundable < self._unit:
            raise InsufficientBalance()

        previous_option = None
        if existing is None:
            self._ledger.debit(member.id, self._unit)
            self._ledger.adjust_stat(member.id, MemberStat.STAKE_COUNT, 1)
        else:
            # The held units move with the stake. Only a change in stake size
            # touches the balance, and it is settled before any stake is written.
            self._settle_difference(member.id, self._unit - existing.amount)
            self._stakes.remove_stake(existing.id)
            previous_option = existing.option

        stake = Stake(
            id=uuid.uuid4().hex,
            member_id=member.id,
            line_id=line.id,
            option=option,
            amount=self._unit,
            created_at=self._clock(),
            display_name=member.display_name,
        )
        self._stakes.add_stake(stake)

        logger.debug(
            "Member %s staked %d on %r (line %s, previous=%r)",
            member.id,
            self._unit,
            option,
            line.id,
            previous_option,
        )
        return SignalResult(
            outcome=SignalOutcome.SWITCHED if previous_option is not None else SignalOutcome.PLACED,
            option=option,
            previous_option=previous_option,
            stake=stake,
        )

    def on_signal_removed(self, member: Member, line: Line, symbol: str) -> SignalResult:
        index = self._codec.decode(symbol, line.symbols)
        if index is None:
            return IGNORED
        # Stakes are frozen once a line is locked.
        if not self._state.can_accept_stake(line):
            return IGNORED

        existing = self._stakes.get_stake(line.id, member.id)
        if existing is None or existing.option != line.options[index]:
            return IGNORED

        self._retire(existing)
        logger.debug("Member %s withdrew from %r (line %s)", member.id, existing.option, line.id)
        return SignalResult(
            outcome=SignalOutcome.WITHDRAWN,
            option=existing.option,
            stake=existing,
        )

    def _retire(self, stake: Stake) -> None:
        self._stakes.remove_stake(stake.id)
        self._ledger.credit(stake.member_id, stake.amount)
        self._ledger.adjust_stat(stake.member_id, MemberStat.STAKE_COUNT, -1)

    def _settle_difference(self, member_id: str, delta: int) -> None:
        if delta > 0:
            self._ledger.debit(member_id, delta)
        elif delta < 0:
            self._ledger.credit(member_id, -delta)
