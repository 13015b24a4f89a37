from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

_OPTIONS_RE = re.compile(r"options:\s*(.+)$", re.IGNORECASE | re.DOTALL)
_WINNER_RE = re.compile(r"winner:\s*(.+)$", re.IGNORECASE | re.DOTALL)


@dataclass
class BetCommand:
    """A parsed `bet` command, independent of the chat platform."""

    action: str
    question: str = ""
    options: List[str] = field(default_factory=list)
    line_id: Optional[str] = None
    winner: Optional[str] = None


class CommandError(ValueError):
    """Raised with a usage hint when a command cannot be parsed."""


def parse_bet_command(text: str, prefix: str = "/") -> BetCommand:
    """
    Parse the text following the `bet` command.

    create "question" options: a, b, c
    lock <line_id>
    resolve <line_id> winner: <option>
    stats | leaderboard | help
    """

    text = (text or "").strip()
    action, _, rest = text.partition(" ")
    action = action.lower()
    rest = rest.strip()

    if action == "create":
        match = _OPTIONS_RE.search(rest)
        if not match:
            raise CommandError(
                f'Usage: `{prefix}bet create "question" options: option1, option2, option3`'
            )
        question = rest[: match.start()].strip().strip("\"'").strip()
        options = [o.strip() for o in match.group(1).split(",") if o.strip()]
        return BetCommand(action="create", question=question, options=options)

    if action == "lock":
        if not rest:
            raise CommandError(f"Usage: `{prefix}bet lock <line_id>`")
        return BetCommand(action="lock", line_id=rest.split()[0])

    if action == "resolve":
        line_id = rest.split()[0] if rest else None
        match = _WINNER_RE.search(rest)
        if not line_id or not match:
            raise CommandError(
                f"Usage: `{prefix}bet resolve <line_id> winner: <winning_option>`"
            )
        return BetCommand(action="resolve", line_id=line_id, winner=match.group(1).strip())

    if action in ("stats", "leaderboard"):
        return BetCommand(action=action)

    return BetCommand(action="help")


def help_text(prefix: str = "/", signal_word: str = "React", stake_unit: int = 1) -> str:
    return (
        "\U0001f3af Betting Bot Commands\n\n"
        "Operator commands:\n"
        f'• {prefix}bet create "question" options: opt1, opt2, opt3 - Create a new betting line\n'
        f"• {prefix}bet lock <line_id> - Lock a betting line\n"
        f"• {prefix}bet resolve <line_id> winner: <option> - Resolve a betting line\n"
        f"• {prefix}bet leaderboard - View the leaderboard\n\n"
        "Member commands:\n"
        f"• {prefix}bet stats - View your betting stats\n"
        f"• {signal_word} with the symbol next to an option to bet on an open line\n\n"
        "How to bet:\n"
        "1) Wait for a betting line to be created\n"
        f"2) {signal_word} with the symbol next to your chosen option\n"
        f"3) Each bet costs {stake_unit} unit; pick another option to switch, undo to withdraw\n"
        "4) Winners split the pot from losers"
    )
