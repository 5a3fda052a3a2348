"""Migration run lock.

Transfer, enrich and embedding backfill all write to ``candidates`` and call
the providers, so only one of them runs at a time in this process.  Acquire
is non-blocking: a caller that does not get the lock answers 409 (HTTP) or
skips the tick (scheduler).
"""

from __future__ import annotations

import threading

_run_lock = threading.Lock()
_current_run: str | None = None


def acquire_run_lock(run_name: str) -> bool:
    """Try to take the lock for *run_name*; False if another run holds it."""
    global _current_run
    if _run_lock.acquire(blocking=False):
        _current_run = run_name
        return True
    return False


def release_run_lock() -> None:
    """Release the lock.  Safe to call when it is not held."""
    global _current_run
    _current_run = None
    try:
        _run_lock.release()
    except RuntimeError:
        pass  # not held


def get_current_run() -> str | None:
    """Name of the run holding the lock, or None."""
    return _current_run


def is_run_active() -> bool:
    return _current_run is not None
