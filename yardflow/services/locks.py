"""
Per-aggregate locks serialising operations on the same trailer or slot.

Keys are (kind, id) tuples, e.g. ("trailer", 7) or ("door", 3). All keys an
operation needs are acquired up-front in sorted order so two operations
touching overlapping aggregates cannot deadlock. Inside the lock the
service re-reads state (SELECT ... FOR UPDATE on PostgreSQL), so a loser
sees the winner's committed result and fails its precondition.

These locks are process-local; across worker processes the row locks
taken by the services are what serialise writers.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Tuple

from yardflow.config import settings
from yardflow.exceptions import InvalidOperationError
from yardflow.utils.logger import get_logger

logger = get_logger(__name__)

LockKey = Tuple[str, int]


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


# Entries live only while some thread holds or waits on the key.
_registry_lock = threading.Lock()
_locks: Dict[LockKey, _Entry] = {}


def _checkout(key: LockKey) -> threading.Lock:
    with _registry_lock:
        entry = _locks.get(key)
        if entry is None:
            entry = _locks[key] = _Entry()
        entry.users += 1
        return entry.lock


def _checkin(key: LockKey) -> None:
    with _registry_lock:
        entry = _locks[key]
        entry.users -= 1
        if entry.users == 0:
            del _locks[key]


@contextmanager
def aggregate_locks(*keys: LockKey, timeout: float = None):
    """Hold every lock in `keys` (None entries ignored) for the block."""
    timeout = settings.LOCK_TIMEOUT_SECONDS if timeout is None else timeout
    ordered = sorted({k for k in keys if k is not None and k[1] is not None})
    held = []
    try:
        for key in ordered:
            lock = _checkout(key)
            if not lock.acquire(timeout=timeout):
                _checkin(key)
                logger.warning(f"Lock timeout on {key[0]} {key[1]} after {timeout}s")
                raise InvalidOperationError(
                    f"{key[0].capitalize()} {key[1]} is busy with another operation, retry later",
                    entity=key[0], id=key[1],
                )
            held.append((key, lock))
        yield
    finally:
        for key, lock in reversed(held):
            lock.release()
            _checkin(key)


def trailer_key(trailer_id) -> LockKey:
    return ("trailer", trailer_id)


def door_key(door_id) -> LockKey:
    return ("door", door_id)


def yard_location_key(location_id) -> LockKey:
    return ("yard_location", location_id)
