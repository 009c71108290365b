"""
locks.py — Per-Model Execution Locks

Purpose:
- Make the "one recalculation per model at a time" contract explicit.
- The recalculation engine holds no locks itself; callers (the API layer,
  scripts) acquire `model_lock(model_id)` around every engine invocation.

Key Notes:
- In-process only: one lock object per model id, kept in a module-level
  registry while at least one caller holds or waits for it. The entry is
  dropped on the last release.
- Multi-worker deployments need an external lock (e.g. Postgres advisory
  lock) behind the same `model_lock` signature.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from app.core.logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Lock Registry
# -----------------------------------------------------------------------------

_registry_guard = threading.Lock()
_model_locks: Dict[str, "_LockEntry"] = {}


class ModelBusyError(Exception):
    """Raised when a model lock cannot be acquired within the timeout."""
    pass


class _LockEntry:
    """A model lock plus the number of callers holding or waiting on it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


def _checkout(model_id: str) -> _LockEntry:
    with _registry_guard:
        entry = _model_locks.get(model_id)
        if entry is None:
            entry = _LockEntry()
            _model_locks[model_id] = entry
        entry.users += 1
        return entry


def _checkin(model_id: str, entry: _LockEntry) -> None:
    with _registry_guard:
        entry.users -= 1
        if entry.users == 0:
            del _model_locks[model_id]


@contextmanager
def model_lock(model_id: str, timeout: Optional[float] = None) -> Iterator[None]:
    """
    Hold the exclusive execution token for `model_id`.

    Args:
        model_id: Model whose projected rows are about to be regenerated
        timeout: Seconds to wait; None waits forever

    Raises:
        ModelBusyError: If the lock was not acquired before `timeout`
    """
    entry = _checkout(model_id)
    acquired = entry.lock.acquire(timeout=-1 if timeout is None else timeout)
    if not acquired:
        _checkin(model_id, entry)
        raise ModelBusyError(f"Model {model_id} is already being recalculated")
    logger.debug("Acquired execution lock for model %s", model_id)
    try:
        yield
    finally:
        entry.lock.release()
        _checkin(model_id, entry)
        logger.debug("Released execution lock for model %s", model_id)


def is_locked(model_id: str) -> bool:
    """Whether some caller currently holds the lock for `model_id`."""
    with _registry_guard:
        entry = _model_locks.get(model_id)
    return entry is not None and entry.lock.locked()
