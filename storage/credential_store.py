"""
Credential store - the advisory-text API key in the local settings table.
Only the advisory client bootstrap reads it.
"""

import sqlite3
from typing import Optional

STORAGE_KEY = 'GEMINI_API_KEY'


class CredentialStoreError(Exception):
    """Raised when a credential cannot be stored."""
    pass


def get_stored_api_key(conn: sqlite3.Connection) -> Optional[str]:
    """
    Read the stored API key.

    Args:
        conn: SQLite connection (tables initialized)

    Returns:
        The key, or None when nothing (or only whitespace) is stored
    """
    row = conn.execute(
        "SELECT value FROM settings WHERE key = ?", (STORAGE_KEY,)
    ).fetchone()

    if row is None or not row[0].strip():
        return None
    return row[0]


def set_stored_api_key(conn: sqlite3.Connection, api_key: str) -> None:
    """
    Store (or overwrite) the API key.

    Args:
        conn: SQLite connection (tables initialized)
        api_key: Key to persist; surrounding whitespace is removed

    Raises:
        CredentialStoreError: If the key is empty
    """
    api_key = (api_key or '').strip()
    if not api_key:
        raise CredentialStoreError("API key must be a non-empty string")

    with conn:
        conn.execute("""
            INSERT INTO settings (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """, (STORAGE_KEY, api_key))

