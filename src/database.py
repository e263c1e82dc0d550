"""
Local session cache for the School Portal client.

Keeps the access/refresh tokens and the last known user record in a small
sqlite file so a restarted client can restore the session before the server
confirms it.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, Optional

import config

logger = logging.getLogger(__name__)

# Database setup
DB_PATH = config.DB_PATH

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_DATA_KEY = "user_data"


def init_db():
    """Initialize the session cache table."""
    conn = sqlite3.connect(DB_PATH)
    cursor = conn.cursor()
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS session_cache (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    conn.commit()
    conn.close()


def get_db_connection():
    """Get database connection with row factory."""
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def _set_value(key: str, value: str):
    conn = get_db_connection()
    try:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO session_cache (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                           updated_at = excluded.updated_at
        """, (key, value))
        conn.commit()
    finally:
        conn.close()


def _get_value(key: str) -> Optional[str]:
    try:
        conn = get_db_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM session_cache WHERE key = ?", (key,))
            row = cursor.fetchone()
        finally:
            conn.close()
    except sqlite3.OperationalError:
        # Cache table not created yet
        return None
    return row['value'] if row else None


def save_tokens(access_token: str, refresh_token: Optional[str] = None):
    """Store the tokens issued at login."""
    _set_value(ACCESS_TOKEN_KEY, access_token)
    if refresh_token:
        _set_value(REFRESH_TOKEN_KEY, refresh_token)


def get_access_token() -> Optional[str]:
    return _get_value(ACCESS_TOKEN_KEY)


def get_refresh_token() -> Optional[str]:
    return _get_value(REFRESH_TOKEN_KEY)


def save_user_data(user: Dict[str, Any]):
    """Cache the user record returned by the server."""
    _set_value(USER_DATA_KEY, json.dumps(user))


def get_user_data() -> Optional[Dict[str, Any]]:
    """Return the cached user record, or None when missing or unreadable."""
    value = _get_value(USER_DATA_KEY)
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError:
        logger.warning("Discarding unreadable cached user record")
        return None


def clear_tokens():
    """Remove tokens and cached user data."""
    try:
        conn = get_db_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM session_cache WHERE key IN (?, ?, ?)",
                           (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_DATA_KEY))
            conn.commit()
        finally:
            conn.close()
    except sqlite3.OperationalError:
        # Nothing cached yet
        return
