"""
Unified database manager that coordinates all repositories
"""

import logging
from typing import Any

from .connection import DatabaseConnection
from .models import PreferenceKey, ValueKind
from .repositories.preference_repository import PreferenceRepository
from .repositories.session_repository import SessionRepository

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Unified database manager that coordinates all repositories"""

    def __init__(self, db_path: str | None = None):
        self.db_connection = DatabaseConnection(db_path)
        self.preference_repo = PreferenceRepository(self.db_connection)
        self.session_repo = SessionRepository(self.db_connection)

    def init_database(self) -> None:
        """Initialize database tables and indexes"""
        self.db_connection.init_database()

    def close(self) -> None:
        self.db_connection.close()

    # Session methods
    def get_current_user(self) -> str:
        """Get the signed-in user identifier"""
        return self.session_repo.get_current_user()

    def set_current_user(self, user_id: str) -> None:
        """Switch the signed-in user"""
        self.session_repo.set_current_user(user_id)

    def clear_current_user(self) -> None:
        """Sign out the current user"""
        self.session_repo.clear_current_user()

    # Preference methods
    def get_preference(self, user_id: str, key: str) -> tuple[str, Any] | None:
        """Get (kind, value) for a user's key"""
        return self.preference_repo.get(PreferenceKey(user_id, key))

    def put_preference(
        self, user_id: str, key: str, value: Any, kind: ValueKind | None = None
    ) -> None:
        """Store a value for a user's key"""
        self.preference_repo.put(PreferenceKey(user_id, key), value, kind)

    def delete_preference(self, user_id: str, key: str) -> bool:
        """Delete a user's key"""
        return self.preference_repo.delete(PreferenceKey(user_id, key))

    def get_all_preferences(self, user_id: str) -> dict[str, Any]:
        """Get every value stored for a user"""
        return self.preference_repo.get_all(user_id)

    def count_users(self) -> int:
        """Number of users with stored progress"""
        return self.preference_repo.count_users()

    def get_connection(self):
        """Get database connection for direct SQL access in tests"""
        return self.db_connection.get_connection()


# Global instance
_db_manager = None


def get_db_manager(db_path: str | None = None) -> DatabaseManager:
    """Get global database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(db_path)
    return _db_manager
