import unittest
from datetime import datetime, timezone

from application.ledger import Ledger
from application.payout_engine import PayoutEngine
from application.reconciler import SignalOutcome, StakeReconciler
from domain.emoji_codec import EmojiCodec
from domain.errors import DuplicateStake, InsufficientBalance, LineNotOpen
from domain.line_state import LineStateMachine
from infrastructure.memory import InMemoryMemberRepository, InMemoryStakeRepository

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)
OVER, UNDER = ":A:", ":B:"


class SpendingElsewhereMemberRepository(InMemoryMemberRepository):
    """Lets another line spend every free unit at the worst moment."""

    def __init__(self) -> None:
        super().__init__()
        self.spend_after_credit = True
        self.spend_before_debit = False

    def _spend_all(self, member_id: str) -> None:
        super().try_debit(member_id, super().get_member(member_id).balance)

    def credit(self, member_id: str, amount: int) -> None:
        super().credit(member_id, amount)
        if self.spend_after_credit:
            self._spend_all(member_id)

    def try_debit(self, member_id: str, amount: int) -> bool:
        if self.spend_before_debit:
            self._spend_all(member_id)
        return super().try_debit(member_id, amount)


class StakeReconcilerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.members = InMemoryMemberRepository()
        self.stakes = InMemoryStakeRepository(self.members)
        self.ledger = Ledger(self.members, starting_balance=20)
        self.machine = LineStateMachine(clock=lambda: NOW, id_factory=lambda: "line-1")
        self.reconciler = StakeReconciler(
            self.ledger,
            self.stakes,
            EmojiCodec(),
            self.machine,
            stake_unit=1,
            clock=lambda: NOW,
        )
        self.payouts = PayoutEngine(self.ledger)
        self.line = self.machine.create(
            "Will Team A score over 100?", ["over", "under"], [OVER, UNDER], "op"
        )
        self.m1 = self.ledger.ensure_member("m1", "Member One")
        self.m2 = self.ledger.ensure_member("m2", "Member Two")
        self.m3 = self.ledger.ensure_member("m3", "Member Three")

    def balance(self, member_id: str) -> int:
        return self.members.get_member(member_id).balance

    def settle(self, winner: str):
        self.machine.resolve(self.line, winner)
        result = self.payouts.compute(self.line, self.stakes.get_stakes_for_line("line-1"), winner)
        self.payouts.apply(self.line, result)
        return result

    def test_place_stake_debits_one_unit(self):
        result = self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.assertEqual(result.outcome, SignalOutcome.PLACED)
        self.assertEqual(result.option, "over")
        self.assertEqual(self.balance("m1"), 19)
        self.assertEqual(self.members.get_member("m1").total_stakes, 1)

    def test_unrelated_symbol_is_ignored(self):
        added = self.reconciler.on_signal_added(self.m1, self.line, ":thumbsup:")
        removed = self.reconciler.on_signal_removed(self.m1, self.line, ":thumbsup:")
        self.assertEqual(added.outcome, SignalOutcome.IGNORED)
        self.assertEqual(removed.outcome, SignalOutcome.IGNORED)
        self.assertEqual(self.balance("m1"), 20)

    def test_same_option_twice_is_duplicate(self):
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        with self.assertRaises(DuplicateStake):
            self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.assertEqual(self.balance("m1"), 19)
        self.assertEqual(len(self.stakes.get_stakes_for_line("line-1")), 1)

    def test_switching_option_replaces_stake_and_keeps_units(self):
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        result = self.reconciler.on_signal_added(self.m1, self.line, UNDER)

        self.assertEqual(result.outcome, SignalOutcome.SWITCHED)
        self.assertEqual(result.previous_option, "over")
        stakes = self.stakes.get_stakes_for_line("line-1")
        self.assertEqual([s.option for s in stakes], ["under"])
        self.assertEqual(self.balance("m1"), 19)
        self.assertEqual(self.members.get_member("m1").total_stakes, 1)

    def test_switching_with_last_unit_is_allowed(self):
        self.members.try_debit("m1", 19)
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.assertEqual(self.balance("m1"), 0)

        self.reconciler.on_signal_added(self.m1, self.line, UNDER)
        self.assertEqual(self.balance("m1"), 0)
        self.assertEqual(self.stakes.get_stake("line-1", "m1").option, "under")

    def test_switch_keeps_stake_when_free_units_are_spent_elsewhere(self):
        members = SpendingElsewhereMemberRepository()
        stakes = InMemoryStakeRepository(members)
        ledger = Ledger(members, starting_balance=1)
        reconciler = StakeReconciler(
            ledger, stakes, EmojiCodec(), self.machine, stake_unit=1, clock=lambda: NOW
        )
        member = ledger.ensure_member("m", "Member")
        reconciler.on_signal_added(member, self.line, OVER)

        result = reconciler.on_signal_added(member, self.line, UNDER)

        self.assertEqual(result.outcome, SignalOutcome.SWITCHED)
        self.assertEqual(stakes.get_stake("line-1", "m").option, "under")
        self.assertEqual(members.get_member("m").balance, 0)
        self.assertEqual(members.get_member("m").total_stakes, 1)

    def test_failed_switch_leaves_existing_stake_in_place(self):
        members = SpendingElsewhereMemberRepository()
        stakes = InMemoryStakeRepository(members)
        ledger = Ledger(members, starting_balance=20)
        member = ledger.ensure_member("m", "Member")
        StakeReconciler(
            ledger, stakes, EmojiCodec(), self.machine, stake_unit=1, clock=lambda: NOW
        ).on_signal_added(member, self.line, OVER)

        # A larger unit needs one more free unit, which another line takes first.
        bigger = StakeReconciler(
            ledger, stakes, EmojiCodec(), self.machine, stake_unit=2, clock=lambda: NOW
        )
        members.spend_before_debit = True
        with self.assertRaises(InsufficientBalance):
            bigger.on_signal_added(member, self.line, UNDER)

        stake = stakes.get_stake("line-1", "m")
        self.assertEqual(stake.option, "over")
        self.assertEqual(stake.amount, 1)
        self.assertEqual(members.get_member("m").total_stakes, 1)

    def test_insufficient_balance(self):
        self.members.try_debit("m1", 20)
        with self.assertRaises(InsufficientBalance):
            self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.assertIsNone(self.stakes.get_stake("line-1", "m1"))
        self.assertEqual(self.balance("m1"), 0)

    def test_stake_rejected_once_locked(self):
        self.machine.lock(self.line)
        with self.assertRaises(LineNotOpen):
            self.reconciler.on_signal_added(self.m1, self.line, OVER)

    def test_withdrawal_refunds(self):
        self.reconciler.on_signal_added(self.m2, self.line, UNDER)
        result = self.reconciler.on_signal_removed(self.m2, self.line, UNDER)
        self.assertEqual(result.outcome, SignalOutcome.WITHDRAWN)
        self.assertEqual(self.balance("m2"), 20)
        self.assertEqual(self.members.get_member("m2").total_stakes, 0)
        self.assertIsNone(self.stakes.get_stake("line-1", "m2"))

    def test_removing_a_different_symbol_is_ignored(self):
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        result = self.reconciler.on_signal_removed(self.m1, self.line, UNDER)
        self.assertEqual(result.outcome, SignalOutcome.IGNORED)
        self.assertEqual(self.stakes.get_stake("line-1", "m1").option, "over")

    def test_removal_without_stake_is_ignored(self):
        result = self.reconciler.on_signal_removed(self.m1, self.line, OVER)
        self.assertEqual(result.outcome, SignalOutcome.IGNORED)

    def test_withdrawal_after_lock_is_ignored(self):
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.machine.lock(self.line)
        result = self.reconciler.on_signal_removed(self.m1, self.line, OVER)
        self.assertEqual(result.outcome, SignalOutcome.IGNORED)
        self.assertEqual(self.balance("m1"), 19)

    def test_three_member_scenario(self):
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.reconciler.on_signal_added(self.m2, self.line, UNDER)
        self.reconciler.on_signal_added(self.m3, self.line, OVER)

        result = self.settle("over")

        self.assertEqual(result.pot, 1)
        self.assertEqual({p.member_id for p in result.payouts}, {"m1", "m3"})
        self.assertEqual(result.per_winner, 0)
        self.assertEqual(result.remainder, 1)
        self.assertEqual([self.balance(m) for m in ("m1", "m2", "m3")], [19, 19, 19])

    def test_withdrawn_member_is_not_part_of_settlement(self):
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.reconciler.on_signal_added(self.m2, self.line, UNDER)
        self.reconciler.on_signal_added(self.m3, self.line, OVER)
        self.reconciler.on_signal_removed(self.m2, self.line, UNDER)
        self.machine.lock(self.line)

        result = self.settle("over")

        self.assertEqual(self.balance("m2"), 20)
        self.assertEqual(result.pot, 0)
        self.assertTrue(all(p.amount == 0 for p in result.payouts))

    def test_winners_are_credited_and_winnings_tracked(self):
        self.reconciler.on_signal_added(self.m1, self.line, OVER)
        self.reconciler.on_signal_added(self.m2, self.line, UNDER)
        self.reconciler.on_signal_added(self.m3, self.line, UNDER)

        result = self.settle("over")

        self.assertEqual(result.per_winner, 2)
        self.assertEqual(self.balance("m1"), 21)
        self.assertEqual(self.members.get_member("m1").total_winnings, 2)
        self.assertEqual(self.balance("m2"), 19)


if __name__ == "__main__":
    unittest.main()
