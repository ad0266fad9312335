"""Identifier providers for ledger records.

Every factory that creates records takes an ``id_provider`` callable so that
ids stay unique even when many records are built in the same millisecond.
"""

from __future__ import annotations

import itertools
import threading
import time
import uuid
from typing import Callable

IdProvider = Callable[[], str]


def uuid_ids() -> str:
    return uuid.uuid4().hex


class CounterIds:
    """Monotonic ``<prefix><n>`` ids, handy for reproducible fixtures."""

    def __init__(self, prefix: str = 'id-', start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            return f"{self.prefix}{next(self._counter)}"


def now_millis() -> int:
    return int(time.time() * 1000)
