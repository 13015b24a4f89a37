from __future__ import annotations

from typing import List, Optional, Protocol

from .models import Line, Member, MemberStat, Stake


class MemberRepository(Protocol):
    """
    Abstraction over member persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `Member` domain model.
    - Hiding any SQL / driver details from the application layer.

    Only the `Ledger` should call the mutating methods.
    """

    def get_member(self, member_id: str) -> Optional[Member]:
        """Return the member with the given ID, or None if not found."""

        ...

    def add_member(self, member: Member) -> None:
        """Persist a new member; existing members are left untouched."""

        ...

    def get_leaderboard(self, limit: int) -> List[Member]:
        """Return up to `limit` members ordered by balance, then winnings."""

        ...

    def try_debit(self, member_id: str, amount: int) -> bool:
        """
        Subtract `amount` from the balance if it would not go negative.

        The check and the update must happen as a single atomic step.
        Returns False when the balance was too low or the member is unknown.
        """

        ...

    def credit(self, member_id: str, amount: int) -> None:
        """Add `amount` to the member's balance."""

        ...

    def adjust_stat(self, member_id: str, stat: MemberStat, delta: int) -> None:
        """Adjust one of the cumulative counters by `delta`."""

        ...


class LineRepository(Protocol):
    """Persistence for betting lines, including their bound message reference."""

    def get_line(self, line_id: str) -> Optional[Line]:
        ...

    def find_by_message_ref(self, message_ref: str) -> Optional[Line]:
        """Return the line whose rendered card is bound to `message_ref`."""

        ...

    def add_line(self, line: Line) -> None:
        ...

    def save_line(self, line: Line) -> None:
        """
        Persist status, winning option, timestamps and message reference.

        Question, options and symbols are immutable after creation.
        """

        ...


class StakeRepository(Protocol):
    """
    Persistence for stakes.

    Implementations must reject a second stake for the same
    (member, line) pair.
    """

    def get_stake(self, line_id: str, member_id: str) -> Optional[Stake]:
        ...

    def get_stakes_for_line(self, line_id: str) -> List[Stake]:
        """Return all stakes on a line, with the member's display name filled in."""

        ...

    def add_stake(self, stake: Stake) -> None:
        ...

    def remove_stake(self, stake_id: str) -> None:
        ...
