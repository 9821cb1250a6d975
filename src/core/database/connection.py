"""
Database connection manager for the progress store
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

from ...config import get_database_path

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


class DatabaseConnection:
    """Manages SQLite database connections and settings"""

    def __init__(self, db_path: str | None = None):
        if db_path and db_path.startswith("sqlite:///"):
            db_path = get_database_path(db_path)
        self.db_path = db_path or get_database_path()
        self._write_lock = threading.RLock()
        self._shared_conn: sqlite3.Connection | None = None

        if self.is_memory:
            # A private in-memory database only lives as long as its connection
            self._shared_conn = self._connect()
        else:
            self._ensure_database_directory()
        self._init_connection_settings()

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY_DB

    def _ensure_database_directory(self) -> None:
        """Ensure the database directory exists"""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        return conn

    def _init_connection_settings(self) -> None:
        """Initialize database connection settings"""
        if self.is_memory:
            return
        with self.get_connection() as conn:
            # Enable WAL mode for better concurrency
            conn.execute("PRAGMA journal_mode=WAL")
            # Set timeout for busy database
            conn.execute("PRAGMA busy_timeout=30000")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper cleanup"""
        with self._write_lock:
            conn = self._shared_conn
            owned = conn is None
            try:
                if owned:
                    conn = self._connect()
                yield conn
            except Exception as e:
                if conn:
                    conn.rollback()
                logger.error(f"Database error: {e}")
                raise
            finally:
                if owned and conn:
                    conn.close()

    def close(self) -> None:
        """Close the shared in-memory connection, if any"""
        with self._write_lock:
            if self._shared_conn is not None:
                self._shared_conn.close()
                self._shared_conn = None

    def init_database(self) -> None:
        """Initialize database tables"""
        with self.get_connection() as conn:
            self._create_tables(conn)
            self._create_indexes(conn)
            conn.commit()

    def _create_tables(self, conn: sqlite3.Connection) -> None:
        """Create database tables"""
        tables = [
            """
            CREATE TABLE IF NOT EXISTS preferences (
                user_id TEXT NOT NULL,
                key TEXT NOT NULL,
                kind TEXT NOT NULL,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, key)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS session_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """,
        ]

        for table_sql in tables:
            conn.execute(table_sql)

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes for prefix scans"""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_preferences_user_key "
            "ON preferences(user_id, key)",
        ]

        for index_sql in indexes:
            try:
                conn.execute(index_sql)
            except sqlite3.OperationalError as e:
                logger.warning(f"Failed to create index: {index_sql}, error: {e}")
