from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from application.context import AppContext
from application.reconciler import SignalOutcome, SignalResult
from application.rendering import (
    LineCard,
    render_leaderboard,
    render_line,
    render_resolution,
    render_stats,
    summarize,
)
from domain.errors import BettingError, LineNotFound, NotAuthorized
from domain.models import Line, Member

logger = logging.getLogger(__name__)


@dataclass
class ExternalContext:
    """
    Information about the caller from a particular channel (Telegram, Discord).

    The application layer never depends on concrete SDK types; it only sees
    this small context object.
    """

    provider: str
    provider_user_id: str
    display_name: str

    @property
    def member_id(self) -> str:
        return f"{self.provider}:{self.provider_user_id}"


@dataclass
class OperationResult:
    """Generic result type for simple operations."""

    success: bool
    error_message: Optional[str] = None
    text: Optional[str] = None


@dataclass
class LineResult:
    """Result of an operator action on a line."""

    success: bool
    error_message: Optional[str] = None
    line: Optional[Line] = None
    card: Optional[LineCard] = None
    announcement: Optional[str] = None


@dataclass
class SignalResponse:
    """
    Result of a member signal.

    `notice` is meant for the member only; `card` is set when the line's
    message should be re-rendered.
    """

    outcome: SignalOutcome
    notice: Optional[str] = None
    card: Optional[LineCard] = None
    line: Optional[Line] = None
    previous_symbol: Optional[str] = None

    @property
    def rejected(self) -> bool:
        return self.outcome == SignalOutcome.IGNORED and self.notice is not None


def _require_operator(app: AppContext, actor: ExternalContext) -> None:
    if not app.is_operator(actor.member_id):
        raise NotAuthorized()


def _load_line(app: AppContext, line_id: str) -> Line:
    line = app.lines.get_line(line_id)
    if line is None:
        raise LineNotFound()
    return line


def _card(app: AppContext, line: Line) -> LineCard:
    stakes = app.stakes.get_stakes_for_line(line.id)
    return render_line(line, summarize(line, stakes))


def create_line(
    app: AppContext,
    actor: ExternalContext,
    question: str,
    options: Sequence[str],
) -> LineResult:
    """
    Open a new betting line.

    Symbols are assigned here, once, and stored with the line. The caller
    posts `card` and then calls `bind_line_message` with the posted
    message's reference.
    """

    try:
        _require_operator(app, actor)
        symbols = app.codec.encode([o.strip() for o in options])
        line = app.state_machine.create(question, options, symbols, actor.member_id)
        app.lines.add_line(line)
    except BettingError as exc:
        logger.info("Create line rejected for %s: %s", actor.member_id, exc)
        return LineResult(success=False, error_message=exc.message)

    logger.info("Line %s created by %s with options %s", line.id, actor.member_id, line.options)
    return LineResult(success=True, line=line, card=render_line(line))


def bind_line_message(app: AppContext, line_id: str, message_ref: str) -> None:
    """Remember which rendered message carries this line's signals."""

    with app.locks.hold(line_id):
        line = _load_line(app, line_id)
        line.message_ref = message_ref
        app.lines.save_line(line)


def find_line_for_message(app: AppContext, message_ref: str) -> Optional[Line]:
    return app.lines.find_by_message_ref(message_ref)


def lock_line(app: AppContext, actor: ExternalContext, line_id: str) -> LineResult:
    try:
        _require_operator(app, actor)
        with app.locks.hold(line_id):
            line = app.state_machine.lock(_load_line(app, line_id))
            app.lines.save_line(line)
            card = _card(app, line)
    except BettingError as exc:
        logger.info("Lock of line %s rejected: %s", line_id, exc)
        return LineResult(success=False, error_message=exc.message)

    logger.info("Line %s locked by %s", line_id, actor.member_id)
    return LineResult(success=True, line=line, card=card)


def resolve_line(
    app: AppContext,
    actor: ExternalContext,
    line_id: str,
    winning_option: str,
) -> LineResult:
    """
    Resolve a line and pay out.

    Open lines may be resolved directly. The state transition is persisted
    before money moves; a second resolve fails with `AlreadyResolved`
    before reaching the payout, so a line is settled at most once.
    """

    try:
        _require_operator(app, actor)
        with app.locks.hold(line_id):
            line = app.state_machine.resolve(_load_line(app, line_id), winning_option)
            app.lines.save_line(line)

            stakes = app.stakes.get_stakes_for_line(line.id)
            payout = app.payouts.compute(line, stakes, line.winning_option)
            app.payouts.apply(line, payout)
            card = render_line(line, summarize(line, stakes), payout)
    except BettingError as exc:
        logger.info("Resolve of line %s rejected: %s", line_id, exc)
        return LineResult(success=False, error_message=exc.message)

    logger.info(
        "Line %s resolved by %s, winner %r", line_id, actor.member_id, line.winning_option
    )
    return LineResult(
        success=True,
        line=line,
        card=card,
        announcement=render_resolution(line, payout),
    )


def signal_added(
    app: AppContext,
    actor: ExternalContext,
    line_id: str,
    symbol: str,
) -> SignalResponse:
    with app.locks.hold(line_id):
        line = app.lines.get_line(line_id)
        if line is None:
            logger.debug("Signal %r on unknown line %s ignored", symbol, line_id)
            return SignalResponse(SignalOutcome.IGNORED)
        return _add(app, actor, line, symbol)


def signal_removed(
    app: AppContext,
    actor: ExternalContext,
    line_id: str,
    symbol: str,
) -> SignalResponse:
    with app.locks.hold(line_id):
        line = app.lines.get_line(line_id)
        if line is None:
            return SignalResponse(SignalOutcome.IGNORED)
        return _remove(app, actor, line, symbol)


def toggle_signal(
    app: AppContext,
    actor: ExternalContext,
    line_id: str,
    symbol: str,
) -> SignalResponse:
    """
    Add the signal, or remove it when the member already backs that option.

    Used by transports whose signals are button presses rather than
    separate add/remove events.
    """

    with app.locks.hold(line_id):
        line = app.lines.get_line(line_id)
        if line is None:
            return SignalResponse(SignalOutcome.IGNORED)

        index = app.codec.decode(symbol, line.symbols)
        stake = app.stakes.get_stake(line.id, actor.member_id)
        if index is not None and stake is not None and stake.option == line.options[index]:
            return _remove(app, actor, line, symbol)
        return _add(app, actor, line, symbol)


def _add(app: AppContext, actor: ExternalContext, line: Line, symbol: str) -> SignalResponse:
    try:
        if app.codec.decode(symbol, line.symbols) is None:
            return SignalResponse(SignalOutcome.IGNORED, line=line)
        member = app.ledger.ensure_member(actor.member_id, actor.display_name)
        result = app.reconciler.on_signal_added(member, line, symbol)
    except BettingError as exc:
        logger.info("Stake by %s on line %s rejected: %s", actor.member_id, line.id, exc)
        return SignalResponse(SignalOutcome.IGNORED, notice=f"\u274c {exc.message}", line=line)

    return _respond(app, line, member, result)


def _remove(app: AppContext, actor: ExternalContext, line: Line, symbol: str) -> SignalResponse:
    member = app.members.get_member(actor.member_id)
    if member is None:
        return SignalResponse(SignalOutcome.IGNORED, line=line)

    result = app.reconciler.on_signal_removed(member, line, symbol)
    return _respond(app, line, member, result)


def _respond(app: AppContext, line: Line, member: Member, result: SignalResult) -> SignalResponse:
    if not result.changed:
        return SignalResponse(SignalOutcome.IGNORED, line=line)

    unit = app.config.stake_unit
    if result.outcome == SignalOutcome.WITHDRAWN:
        balance = app.ledger.get_member(member.id).balance
        notice = (
            f"\U0001f504 Bet removed! Your bet on \"{result.option}\" for "
            f"\"{line.question}\" has been cancelled. Your balance is now {balance} units."
        )
    elif result.outcome == SignalOutcome.SWITCHED:
        notice = (
            f"\U0001f504 Switched! Your {unit} unit moved from \"{result.previous_option}\" "
            f"to \"{result.option}\" for \"{line.question}\"."
        )
    else:
        notice = (
            f"\U0001f389 Confirmed! You bet {unit} unit on \"{result.option}\" "
            f"for \"{line.question}\"!"
        )

    previous_symbol = None
    if result.previous_option is not None:
        previous_symbol = line.symbols[line.options.index(result.previous_option)]

    return SignalResponse(
        outcome=result.outcome,
        notice=notice,
        card=_card(app, line),
        line=line,
        previous_symbol=previous_symbol,
    )


def get_stats(app: AppContext, actor: ExternalContext) -> OperationResult:
    member = app.ledger.ensure_member(actor.member_id, actor.display_name)
    return OperationResult(
        success=True,
        text=render_stats(member, app.ledger.starting_balance),
    )


def get_leaderboard(
    app: AppContext,
    actor: ExternalContext,
    limit: Optional[int] = None,
) -> OperationResult:
    try:
        _require_operator(app, actor)
    except BettingError as exc:
        return OperationResult(success=False, error_message=exc.message)

    members = app.ledger.leaderboard(limit or app.config.leaderboard_size)
    return OperationResult(success=True, text=render_leaderboard(members))
