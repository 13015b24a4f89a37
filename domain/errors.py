from __future__ import annotations


class BettingError(Exception):
    """
    Base class for recoverable betting errors.

    The message is safe to show to the member or operator who triggered
    the action.
    """

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidOptions(BettingError):
    default_message = "You must provide at least 2 distinct, non-empty options."


class InvalidTransition(BettingError):
    default_message = "That action is not allowed in the line's current state."


class NotOpen(InvalidTransition):
    default_message = "This betting line is already locked or resolved."


class LineNotOpen(NotOpen):
    default_message = "This betting line is no longer accepting bets."


class AlreadyResolved(InvalidTransition):
    default_message = "This betting line has already been resolved."


class UnknownOption(BettingError):
    default_message = "That option is not part of this betting line."


class InsufficientBalance(BettingError):
    default_message = "Insufficient balance to place a bet."


class DuplicateStake(BettingError):
    default_message = "You have already bet on this option."


class LineNotFound(BettingError):
    default_message = "Betting line not found."


class MemberNotFound(BettingError):
    default_message = "Member not found."


class NotAuthorized(BettingError):
    default_message = "Only operators can do that."
