from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from services.errors import GenerationInProgressError


_registry_lock = threading.Lock()
_school_locks: dict[Any, threading.Lock] = {}


def _lock_for(school_id: Any) -> threading.Lock:
    with _registry_lock:
        lock = _school_locks.get(school_id)
        if lock is None:
            lock = _school_locks[school_id] = threading.Lock()
        return lock


@contextmanager
def school_generation_lock(school_id: Any, *, timeout: float) -> Iterator[None]:
    """Serialize generation runs per school within this process."""
    lock = _lock_for(school_id)
    if not lock.acquire(timeout=max(0.0, timeout)):
        raise GenerationInProgressError(
            "Another timetable generation is already running for this school. Try again shortly."
        )
    try:
        yield
    finally:
        lock.release()
