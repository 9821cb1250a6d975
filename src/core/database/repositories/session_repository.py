"""
Session repository holding the signed-in user
"""

import logging

from ..connection import DatabaseConnection

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "current_user"


class SessionRepository:
    """Repository for process-wide session values"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def get_current_user(self) -> str:
        """Get the current user identifier, empty when nobody signed in"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT value FROM session_state WHERE key = ?", (CURRENT_USER_KEY,)
            )
            row = cursor.fetchone()
            return row["value"] if row else ""

    def set_current_user(self, user_id: str) -> None:
        """Switch the current user"""
        with self.db_connection.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO session_state (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (CURRENT_USER_KEY, user_id),
            )
            conn.commit()
        logger.info(f"Current user set to '{user_id}'")

    def clear_current_user(self) -> None:
        """Sign out"""
        with self.db_connection.get_connection() as conn:
            conn.execute("DELETE FROM session_state WHERE key = ?", (CURRENT_USER_KEY,))
            conn.commit()
        logger.info("Current user cleared")
