from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from application.config import BettingConfig
from application.ledger import Ledger
from application.locks import LineLocks
from application.payout_engine import PayoutEngine
from application.reconciler import StakeReconciler
from domain.emoji_codec import EmojiCodec
from domain.line_state import LineStateMachine, new_line_id
from domain.repositories import LineRepository, MemberRepository, StakeRepository


@dataclass
class AppContext:
    """
    Everything the service functions need, wired once at start-up.

    Interfaces receive this object and pass it to `application.services`;
    nothing in the application keeps module level state.
    """

    config: BettingConfig
    members: MemberRepository
    lines: LineRepository
    stakes: StakeRepository
    ledger: Ledger
    codec: EmojiCodec
    state_machine: LineStateMachine
    reconciler: StakeReconciler
    payouts: PayoutEngine
    locks: LineLocks
    is_operator: Callable[[str], bool]


def build_context(
    config: BettingConfig,
    member_repo: MemberRepository,
    line_repo: LineRepository,
    stake_repo: StakeRepository,
    is_operator: Optional[Callable[[str], bool]] = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    id_factory: Callable[[], str] = new_line_id,
) -> AppContext:
    ledger = Ledger(member_repo, config.default_balance)
    codec = EmojiCodec()
    state_machine = LineStateMachine(clock=clock, id_factory=id_factory)
    reconciler = StakeReconciler(
        ledger,
        stake_repo,
        codec,
        state_machine,
        stake_unit=config.stake_unit,
        clock=clock,
    )
    return AppContext(
        config=config,
        members=member_repo,
        lines=line_repo,
        stakes=stake_repo,
        ledger=ledger,
        codec=codec,
        state_machine=state_machine,
        reconciler=reconciler,
        payouts=PayoutEngine(ledger),
        locks=LineLocks(),
        is_operator=is_operator or config.operator_check(),
    )
