from __future__ import annotations

from typing import List, Sequence

from .errors import UnknownOption
from .models import Line, Payout, PayoutResult, Stake


def compute_payouts(line: Line, stakes: Sequence[Stake], winning_option: str) -> PayoutResult:
    """
    Split the losing stakes evenly among the winning stakes.

    Pure function of its inputs. Amounts are integers: each winner gets
    ``pot // len(winners)`` and the remainder stays with the house, so
    ``sum(payouts) + remainder == pot`` always holds.
    """

    if winning_option not in line.options:
        raise UnknownOption()

    winners: List[Stake] = [s for s in stakes if s.option == winning_option]
    losers: List[Stake] = [s for s in stakes if s.option != winning_option]
    pot = sum(s.amount for s in losers)

    if not winners:
        return PayoutResult(
            winning_option=winning_option,
            pot=pot,
            per_winner=0,
            remainder=pot,
            payouts=[],
            losers=losers,
            message="No one bet on the winning option. Pot retained by the house.",
        )

    if not losers:
        return PayoutResult(
            winning_option=winning_option,
            pot=0,
            per_winner=0,
            remainder=0,
            payouts=[_payout(s, 0) for s in winners],
            losers=[],
            message="Everyone bet on the winning option. No payouts.",
        )

    per_winner, remainder = divmod(pot, len(winners))
    return PayoutResult(
        winning_option=winning_option,
        pot=pot,
        per_winner=per_winner,
        remainder=remainder,
        payouts=[_payout(s, per_winner) for s in winners],
        losers=losers,
        message=(
            f"Winners receive {per_winner} units each. "
            f"{remainder} units remain in the house pool."
        ),
    )


def _payout(stake: Stake, amount: int) -> Payout:
    return Payout(
        member_id=stake.member_id,
        display_name=stake.display_name,
        amount=amount,
        stake=stake.amount,
    )
