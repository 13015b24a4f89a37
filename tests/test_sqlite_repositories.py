import os
import sqlite3
import tempfile
import unittest
from datetime import datetime, timezone

from application.config import BettingConfig
from application.context import build_context
from application.services import ExternalContext, create_line, resolve_line, signal_added
from domain.models import Line, LineStatus, Member, MemberStat, Stake
from infrastructure.storage import open_repositories

NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


class SqliteRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self._tmp.name, "data", "betting.db")
        self.members, self.lines, self.stakes = open_repositories(self.db_path)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _line(self) -> Line:
        return Line(
            id="abc12345",
            question="Over or under?",
            options=["over", "under"],
            symbols=["\U0001f4c8", "\U0001f4c9"],
            created_by="discord:op",
            created_at=NOW,
        )

    def test_member_round_trip_and_debit_guard(self):
        self.members.add_member(Member(id="discord:1", display_name="Ann", balance=2))
        self.assertTrue(self.members.try_debit("discord:1", 2))
        self.assertFalse(self.members.try_debit("discord:1", 1))
        self.assertFalse(self.members.try_debit("discord:unknown", 1))
        self.assertEqual(self.members.get_member("discord:1").balance, 0)

    def test_add_member_does_not_overwrite(self):
        self.members.add_member(Member(id="discord:1", display_name="Ann", balance=20))
        self.members.credit("discord:1", 5)
        self.members.add_member(Member(id="discord:1", display_name="Other", balance=20))
        member = self.members.get_member("discord:1")
        self.assertEqual(member.display_name, "Ann")
        self.assertEqual(member.balance, 25)

    def test_adjust_stat_and_leaderboard_order(self):
        self.members.add_member(Member(id="a", display_name="A", balance=20))
        self.members.add_member(Member(id="b", display_name="B", balance=20))
        self.members.add_member(Member(id="c", display_name="C", balance=25))
        self.members.adjust_stat("b", MemberStat.WINNINGS, 3)
        self.members.adjust_stat("a", MemberStat.STAKE_COUNT, 2)

        board = self.members.get_leaderboard(2)
        self.assertEqual([m.id for m in board], ["c", "b"])
        self.assertEqual(self.members.get_member("a").total_stakes, 2)

    def test_line_round_trip(self):
        line = self._line()
        self.lines.add_line(line)

        line.status = LineStatus.RESOLVED
        line.winning_option = "under"
        line.resolved_at = NOW
        line.message_ref = "discord:1:2"
        self.lines.save_line(line)

        stored = self.lines.get_line("abc12345")
        self.assertEqual(stored.options, ["over", "under"])
        self.assertEqual(stored.symbols, ["\U0001f4c8", "\U0001f4c9"])
        self.assertEqual(stored.status, LineStatus.RESOLVED)
        self.assertEqual(stored.winning_option, "under")
        self.assertEqual(stored.created_at, NOW)
        self.assertEqual(stored.resolved_at, NOW)
        self.assertEqual(self.lines.find_by_message_ref("discord:1:2").id, "abc12345")
        self.assertIsNone(self.lines.get_line("missing"))

    def test_one_stake_per_member_and_line(self):
        self.members.add_member(Member(id="discord:1", display_name="Ann", balance=20))
        self.lines.add_line(self._line())
        stake = Stake(
            id="s1",
            member_id="discord:1",
            line_id="abc12345",
            option="over",
            amount=1,
            created_at=NOW,
        )
        self.stakes.add_stake(stake)

        with self.assertRaises(sqlite3.IntegrityError):
            self.stakes.add_stake(
                Stake(
                    id="s2",
                    member_id="discord:1",
                    line_id="abc12345",
                    option="under",
                    amount=1,
                    created_at=NOW,
                )
            )

        stored = self.stakes.get_stake("abc12345", "discord:1")
        self.assertEqual(stored.option, "over")
        self.assertEqual(stored.display_name, "Ann")

        self.stakes.remove_stake("s1")
        self.assertEqual(self.stakes.get_stakes_for_line("abc12345"), [])

    def test_services_against_sqlite(self):
        operator = ExternalContext("discord", "op", "Operator")
        app = build_context(
            BettingConfig(operator_ids=frozenset({operator.member_id})),
            self.members,
            self.lines,
            self.stakes,
        )
        line = create_line(app, operator, "Over or under?", ["over", "under"]).line
        ann = ExternalContext("discord", "1", "Ann")
        bob = ExternalContext("discord", "2", "Bob")
        signal_added(app, ann, line.id, line.symbols[0])
        signal_added(app, bob, line.id, line.symbols[1])

        result = resolve_line(app, operator, line.id, "over")

        self.assertTrue(result.success)
        self.assertEqual(self.members.get_member(ann.member_id).balance, 20)
        self.assertEqual(self.members.get_member(bob.member_id).balance, 19)
        self.assertEqual(self.lines.get_line(line.id).status, LineStatus.RESOLVED)


if __name__ == "__main__":
    unittest.main()
