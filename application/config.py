from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Mapping, Optional

DEFAULT_BALANCE = 20
STAKE_UNIT = 1
LEADERBOARD_SIZE = 10
DEFAULT_DB_PATH = "betting.db"


@dataclass(frozen=True)
class BettingConfig:
    """
    Runtime settings, usually read from the environment (or `.env`).

    - BETTING_DEFAULT_BALANCE: starting balance for new members.
    - BETTING_STAKE_UNIT: units committed by one stake.
    - BETTING_LEADERBOARD_SIZE: rows shown by the leaderboard command.
    - BETTING_OPERATORS: comma separated member ids allowed to run
      operator commands, e.g. ``discord:1234,telegram:5678``.
    - DB_PATH: sqlite file; ``:memory:`` keeps everything in process.
    """

    default_balance: int = DEFAULT_BALANCE
    stake_unit: int = STAKE_UNIT
    leaderboard_size: int = LEADERBOARD_SIZE
    operator_ids: FrozenSet[str] = field(default_factory=frozenset)
    db_path: str = DEFAULT_DB_PATH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BettingConfig":
        env = os.environ if environ is None else environ
        operators = env.get("BETTING_OPERATORS", "")
        return cls(
            default_balance=_positive_int(env, "BETTING_DEFAULT_BALANCE", DEFAULT_BALANCE),
            stake_unit=_positive_int(env, "BETTING_STAKE_UNIT", STAKE_UNIT),
            leaderboard_size=_positive_int(env, "BETTING_LEADERBOARD_SIZE", LEADERBOARD_SIZE),
            operator_ids=frozenset(o.strip() for o in operators.split(",") if o.strip()),
            db_path=env.get("DB_PATH", DEFAULT_DB_PATH),
        )

    def operator_check(self) -> Callable[[str], bool]:
        """Build an `is_operator` predicate from the configured allowlist."""

        allowed = self.operator_ids
        return lambda member_id: member_id in allowed


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got {value}")
    return value
