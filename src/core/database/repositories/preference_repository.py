"""
Preference repository for per-user key-value operations
"""

import json
import logging
from typing import Any

from ..connection import DatabaseConnection
from ..models import PreferenceKey, ValueKind

logger = logging.getLogger(__name__)


def infer_kind(value: Any) -> ValueKind:
    """Pick the storage kind for a plain Python value"""
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (set, frozenset)):
        return ValueKind.STRING_SET
    raise TypeError(f"Unsupported preference value type: {type(value).__name__}")


def encode_value(kind: ValueKind, value: Any) -> str:
    """Encode a value into its stored text form"""
    if kind == ValueKind.BOOL:
        return "1" if value else "0"
    if kind in (ValueKind.INT, ValueKind.LONG):
        return str(int(value))
    if kind == ValueKind.FLOAT:
        return repr(float(value))
    if kind == ValueKind.STRING_SET:
        return json.dumps(sorted(str(v) for v in value), ensure_ascii=False)
    return str(value)


def decode_value(kind: str, raw: str) -> Any:
    """Decode a stored text value according to its kind"""
    kind = ValueKind(kind)
    if kind == ValueKind.BOOL:
        return raw == "1"
    if kind in (ValueKind.INT, ValueKind.LONG):
        return int(raw)
    if kind == ValueKind.FLOAT:
        return float(raw)
    if kind == ValueKind.STRING_SET:
        return set(json.loads(raw))
    return raw


class PreferenceRepository:
    """Repository for key-value rows addressed by (user_id, key)"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def get(self, pref_key: PreferenceKey) -> tuple[str, Any] | None:
        """Get (kind, value) for a key, or None when absent"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT kind, value FROM preferences WHERE user_id = ? AND key = ?",
                (pref_key.user_id, pref_key.key),
            )
            row = cursor.fetchone()
        if row is None:
            return None
        return row["kind"], decode_value(row["kind"], row["value"])

    def put(self, pref_key: PreferenceKey, value: Any, kind: ValueKind | None = None) -> None:
        """Insert or replace a single value; each write commits on its own"""
        kind = kind or infer_kind(value)
        encoded = encode_value(kind, value)
        with self.db_connection.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO preferences (user_id, key, kind, value, updated_at)
                VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id, key) DO UPDATE SET
                    kind = excluded.kind,
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (pref_key.user_id, pref_key.key, kind.value, encoded),
            )
            conn.commit()
        logger.debug(f"Stored {pref_key.user_id}/{pref_key.key} ({kind.value})")

    def delete(self, pref_key: PreferenceKey) -> bool:
        """Delete a key, returning True if it existed"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM preferences WHERE user_id = ? AND key = ?",
                (pref_key.user_id, pref_key.key),
            )
            conn.commit()
            return cursor.rowcount > 0

    def get_all(self, user_id: str) -> dict[str, Any]:
        """Get every value stored for a user, keyed by logical key"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                "SELECT key, kind, value FROM preferences WHERE user_id = ? ORDER BY key",
                (user_id,),
            )
            rows = cursor.fetchall()
        return {row["key"]: decode_value(row["kind"], row["value"]) for row in rows}

    def get_raw_with_prefix(self, user_id: str, prefix: str) -> list[tuple[str, str, str]]:
        """Get (key, kind, raw value) rows whose key starts with prefix"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT key, kind, value FROM preferences
                WHERE user_id = ? AND substr(key, 1, ?) = ?
                ORDER BY key
                """,
                (user_id, len(prefix), prefix),
            )
            return [(row["key"], row["kind"], row["value"]) for row in cursor.fetchall()]

    def count_users(self) -> int:
        """Number of distinct users with stored state"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute("SELECT COUNT(DISTINCT user_id) FROM preferences")
            return cursor.fetchone()[0]
