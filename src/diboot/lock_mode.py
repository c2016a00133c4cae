from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for cached singleton construction.

    The container is built for single-threaded use, so locking is off by
    default. Switch to ``THREAD`` when several threads may race to resolve
    the same singleton for the first time.
    """

    THREAD = "thread"
    """Guard each effective cache key with a re-entrant ``threading.RLock``."""

    NONE = "none"
    """Disable locking around cache reads/writes."""
