"""User lock manager serializing read-modify-write sequences per user"""

import contextlib
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class LockInfo:
    """Information about a held user lock"""

    locked_at: datetime
    operation: str
    owner_thread: int
    depth: int = 1


@dataclass
class _UserLock:
    mutex: threading.RLock = field(default_factory=threading.RLock)
    info: LockInfo | None = None


class UserLockManager:
    """Hands out one re-entrant mutex per user"""

    def __init__(self):
        self._locks: dict[str, _UserLock] = {}
        self._registry_lock = threading.Lock()

    def _get_user_lock(self, user_id: str) -> _UserLock:
        with self._registry_lock:
            user_lock = self._locks.get(user_id)
            if user_lock is None:
                user_lock = _UserLock()
                self._locks[user_id] = user_lock
            return user_lock

    @contextlib.contextmanager
    def hold(self, user_id: str, operation: str):
        """
        Hold the user's mutex for the duration of the block

        Args:
            user_id: Current user identifier
            operation: Name of operation being locked, for diagnostics
        """
        user_lock = self._get_user_lock(user_id)
        with user_lock.mutex:
            if user_lock.info is None:
                user_lock.info = LockInfo(
                    locked_at=datetime.now(),
                    operation=operation,
                    owner_thread=threading.get_ident(),
                )
                logger.debug(f"Acquired lock for user '{user_id}', operation: {operation}")
            else:
                user_lock.info.depth += 1
            try:
                yield user_lock.info
            finally:
                user_lock.info.depth -= 1
                if user_lock.info.depth == 0:
                    user_lock.info = None
                    logger.debug(
                        f"Released lock for user '{user_id}', operation: {operation}"
                    )

    def is_locked(self, user_id: str) -> bool:
        """Check if user is currently locked by any thread"""
        with self._registry_lock:
            user_lock = self._locks.get(user_id)
        return user_lock is not None and user_lock.info is not None

    def get_lock_info(self, user_id: str) -> LockInfo | None:
        """Get lock information for user, None when not held"""
        with self._registry_lock:
            user_lock = self._locks.get(user_id)
        return user_lock.info if user_lock else None

    def get_known_users_count(self) -> int:
        """Number of users that have ever been locked"""
        with self._registry_lock:
            return len(self._locks)
