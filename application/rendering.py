from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from domain.models import Line, LineStatus, LineSummary, Member, PayoutResult, Stake

STATUS_LABELS = {
    LineStatus.OPEN: "\U0001f7e2 Open for betting",
    LineStatus.LOCKED: "\U0001f512 Locked",
    LineStatus.RESOLVED: "\u2705 Resolved",
}

MEDALS = ("\U0001f947", "\U0001f948", "\U0001f949")


@dataclass
class CardOption:
    symbol: str
    option: str
    stakes: int


@dataclass
class LineCard:
    """
    Transport-neutral description of a line's message.

    Interfaces display `text` and use `options` to seed reactions or
    buttons; binding the posted message back to `line_id` is their job.
    """

    line_id: str
    text: str
    status: LineStatus
    options: List[CardOption] = field(default_factory=list)
    payout: Optional[PayoutResult] = None

    @property
    def locked(self) -> bool:
        return self.status == LineStatus.LOCKED

    @property
    def resolved(self) -> bool:
        return self.status == LineStatus.RESOLVED


def summarize(line: Line, stakes: Sequence[Stake]) -> LineSummary:
    by_option: dict = {option: [] for option in line.options}
    for stake in stakes:
        if stake.option in by_option:
            by_option[stake.option].append(stake)
    return LineSummary(
        stakes_by_option=by_option,
        total_stakes=len(stakes),
        total_pot=sum(s.amount for s in stakes),
    )


def render_line(
    line: Line,
    summary: Optional[LineSummary] = None,
    payout: Optional[PayoutResult] = None,
) -> LineCard:
    options = [
        CardOption(
            symbol=symbol,
            option=option,
            stakes=summary.count_for(option) if summary else 0,
        )
        for option, symbol in zip(line.options, line.symbols)
    ]

    parts = [f"\U0001f3af Betting Line (ID: {line.id})", "", line.question, ""]
    parts.extend(f"{o.symbol} {o.option}" for o in options)
    parts.extend(["", f"Current Status: {STATUS_LABELS[line.status]}"])

    if summary is not None:
        parts.extend(["", "--------- Current Bets ---------"])
        for o in options:
            plural = "" if o.stakes == 1 else "s"
            parts.append(f"{o.symbol} {o.option}: {o.stakes} bet{plural}")
        parts.extend(["", f"\U0001f4b0 Total Pot: {summary.total_pot} units"])

    if line.status == LineStatus.RESOLVED and payout is not None:
        parts.extend(["", f"\U0001f3c6 Winner: {line.winning_option}"])
        if payout.payouts:
            parts.extend(["", "\U0001f389 Payouts:"])
            parts.extend(f"• {p.display_name}: +{p.amount} units" for p in payout.payouts)
        if payout.message:
            parts.extend(["", payout.message])

    return LineCard(
        line_id=line.id,
        text="\n".join(parts),
        status=line.status,
        options=options,
        payout=payout,
    )


def render_resolution(line: Line, payout: PayoutResult) -> str:
    """Channel announcement posted when a line is resolved."""

    text = (
        f"\U0001f389 Betting Line \"{line.question}\" resolved!\n"
        f"\U0001f3c6 Winner: {payout.winning_option}\n"
        f"\U0001f4b0 {payout.message}"
    )
    winners = [p.display_name for p in payout.payouts]
    losers = [s.display_name for s in payout.losers]
    if winners:
        text += f"\n\U0001f4ca Winners: {', '.join(winners)}"
    if losers:
        text += f"\n\U0001f4c9 Losers: {', '.join(losers)}"
    return text + f"\n(ID: {line.id})"


def render_stats(member: Member, starting_balance: int) -> str:
    net = member.balance - starting_balance
    return (
        "Your Betting Stats\n\n"
        f"\U0001f4b0 Balance: {member.balance} units\n"
        f"\U0001f3af Total Bets: {member.total_stakes}\n"
        f"\U0001f3c6 Total Winnings: {member.total_winnings} units\n"
        f"\U0001f4ca Net: {net:+d} units"
    )


def render_leaderboard(members: Sequence[Member]) -> str:
    if not members:
        return "No one has placed a bet yet."

    lines = ["\U0001f3c6 Betting Leaderboard", ""]
    for i, m in enumerate(members):
        rank = MEDALS[i] if i < len(MEDALS) else f"{i + 1}."
        lines.append(
            f"{rank} {m.display_name} - {m.balance} units ({m.total_winnings} winnings)"
        )
    return "\n".join(lines)
