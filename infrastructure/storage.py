from __future__ import annotations

import logging
import os
from typing import Tuple

from domain.repositories import LineRepository, MemberRepository, StakeRepository
from infrastructure.db.line_repository_sqlite import SqliteLineRepository
from infrastructure.db.member_repository_sqlite import SqliteMemberRepository
from infrastructure.db.stake_repository_sqlite import SqliteStakeRepository
from infrastructure.memory import (
    InMemoryLineRepository,
    InMemoryMemberRepository,
    InMemoryStakeRepository,
)

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


def open_repositories(
    db_path: str,
) -> Tuple[MemberRepository, LineRepository, StakeRepository]:
    """Return member, line and stake repositories sharing one store."""

    if db_path == MEMORY:
        logger.warning("Using in-memory storage; balances are lost on restart.")
        members = InMemoryMemberRepository()
        return members, InMemoryLineRepository(), InMemoryStakeRepository(members)

    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    logger.info("Using sqlite database at %s", db_path)
    return (
        SqliteMemberRepository(db_path),
        SqliteLineRepository(db_path),
        SqliteStakeRepository(db_path),
    )
