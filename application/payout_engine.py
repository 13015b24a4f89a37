from __future__ import annotations

import logging
from typing import Sequence

from application.ledger import Ledger
from domain.models import Line, LineStatus, MemberStat, PayoutResult, Stake
from domain.payouts import compute_payouts

logger = logging.getLogger(__name__)


class PayoutEngine:
    """
    Computes and applies the settlement of a resolved line.

    Stake units are taken from the member's balance when the stake is
    placed, so a losing stake is already paid for; applying a result only
    credits winners. Callers apply a result once, right after the line
    transitions to resolved.
    """

    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger

    @staticmethod
    def compute(line: Line, stakes: Sequence[Stake], winning_option: str) -> PayoutResult:
        return compute_payouts(line, stakes, winning_option)

    def apply(self, line: Line, result: PayoutResult) -> None:
        if line.status != LineStatus.RESOLVED:
            raise ValueError(f"Line {line.id} must be resolved before paying out.")

        for payout in result.payouts:
            if payout.amount == 0:
                continue
            self._ledger.credit(payout.member_id, payout.amount)
            self._ledger.adjust_stat(payout.member_id, MemberStat.WINNINGS, payout.amount)

        logger.info(
            "Settled line %s: pot=%d winners=%d per_winner=%d house=%d",
            line.id,
            result.pot,
            len(result.payouts),
            result.per_winner,
            result.remainder,
        )
