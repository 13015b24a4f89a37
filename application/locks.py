from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class LineLocks:
    """
    One mutex per line id.

    Everything that reads and then changes a line or its stakes runs
    inside `hold(line_id)`. Different lines never block each other.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, line_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(line_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[line_id] = lock
            return lock

    @contextmanager
    def hold(self, line_id: str) -> Iterator[None]:
        lock = self._lock_for(line_id)
        with lock:
            yield
