"""
Per-user progress store on top of the key-value database

Every logical key is addressed together with the current user identifier, so
switching the signed-in user switches all visible state. Missing keys always
resolve to the caller's default.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable

from .core.database.database_manager import DatabaseManager
from .core.database.models import ValueKind
from .core.database.repositories.preference_repository import decode_value
from .core.locks.user_lock_manager import UserLockManager

logger = logging.getLogger(__name__)

STUDY_TYPES = ("word", "grammar")
ACTIVITY_TYPES = ("word", "grammar", "quiz")

# Word quizzes are "easy", grammar quizzes are "hard"
DIFFICULTY_STUDY_TYPES = {"easy": "word", "hard": "grammar"}


def require_study_type(item_type: str) -> str:
    """Validate a study item type tag"""
    if item_type not in STUDY_TYPES:
        raise ValueError(f"Unknown study type: {item_type!r}")
    return item_type


def require_difficulty(difficulty: str) -> str:
    """Validate a quiz difficulty"""
    if difficulty not in DIFFICULTY_STUDY_TYPES:
        raise ValueError(f"Unknown quiz difficulty: {difficulty!r}")
    return difficulty


class ProgressStore:
    """Key-value store scoped to the current user"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        lock_manager: UserLockManager | None = None,
        user_resolver: Callable[[], str] | None = None,
    ):
        self.db_manager = db_manager
        self.lock_manager = lock_manager or UserLockManager()
        self._user_resolver = user_resolver or db_manager.get_current_user
        # User pinned by the innermost locked() block of each thread
        self._pinned = threading.local()

    @property
    def user_id(self) -> str:
        """Identifier of the user whose state is visible"""
        pinned = getattr(self._pinned, "user_id", None)
        if pinned is not None:
            return pinned
        return self._user_resolver()

    @contextmanager
    def locked(self, operation: str):
        """
        Serialize a read-modify-write sequence for the current user

        The user is resolved once on entry; every read and write inside the
        block, nested blocks included, stays on that user even if the
        signed-in user changes meanwhile.
        """
        user_id = self.user_id
        previous = getattr(self._pinned, "user_id", None)
        with self.lock_manager.hold(user_id, operation):
            self._pinned.user_id = user_id
            try:
                yield user_id
            finally:
                self._pinned.user_id = previous

    # Generic access
    def get(self, key: str, default: Any = None) -> Any:
        """Get a value, or default when the key is absent"""
        stored = self.db_manager.get_preference(self.user_id, key)
        if stored is None:
            return default
        return stored[1]

    def set(self, key: str, value: Any, kind: ValueKind | None = None) -> None:
        """Store a value; the kind is inferred when not given"""
        self.db_manager.put_preference(self.user_id, key, value, kind)

    def remove(self, key: str) -> bool:
        return self.db_manager.delete_preference(self.user_id, key)

    def contains(self, key: str) -> bool:
        return self.db_manager.get_preference(self.user_id, key) is not None

    def get_all(self) -> dict[str, Any]:
        """Every value of the current user keyed by logical key"""
        return self.db_manager.get_all_preferences(self.user_id)

    def items_with_prefix(self, prefix: str) -> dict[str, Any]:
        """Decoded values whose key starts with prefix, keyed by the suffix"""
        rows = self.db_manager.preference_repo.get_raw_with_prefix(self.user_id, prefix)
        return {key[len(prefix):]: decode_value(kind, raw) for key, kind, raw in rows}

    # Typed access
    def get_string(self, key: str, default: str | None = None) -> str | None:
        value = self.get(key)
        return value if isinstance(value, str) else default

    def set_string(self, key: str, value: str) -> None:
        self.set(key, value, ValueKind.STRING)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value

    def set_int(self, key: str, value: int) -> None:
        self.set(key, value, ValueKind.INT)

    def get_long(self, key: str, default: int = 0) -> int:
        return self.get_int(key, default)

    def set_long(self, key: str, value: int) -> None:
        self.set(key, value, ValueKind.LONG)

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        return float(value)

    def set_float(self, key: str, value: float) -> None:
        self.set(key, value, ValueKind.FLOAT)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        return value if isinstance(value, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, value, ValueKind.BOOL)

    def get_string_set(self, key: str) -> set[str]:
        value = self.get(key)
        return set(value) if isinstance(value, set) else set()

    def set_string_set(self, key: str, value: set[str]) -> None:
        self.set(key, set(value), ValueKind.STRING_SET)
