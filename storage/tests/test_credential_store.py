"""
Tests for the API key credential store.
"""

import pytest
import sqlite3

from storage.credential_store import (
    get_stored_api_key,
    set_stored_api_key,
    CredentialStoreError,
    STORAGE_KEY
)
from storage.loaders import init_database


@pytest.fixture
def in_memory_db():
    """Create in-memory SQLite database for testing."""
    conn = sqlite3.connect(':memory:')
    init_database(conn)
    return conn


class TestCredentialStore:
    """Tests for get/set/clear of the stored key."""

    def test_nothing_stored(self, in_memory_db):
        assert get_stored_api_key(in_memory_db) is None

    def test_set_and_get(self, in_memory_db):
        """Stored key is returned stripped."""
        set_stored_api_key(in_memory_db, '  abc123  ')

        assert get_stored_api_key(in_memory_db) == 'abc123'

    def test_overwrite(self, in_memory_db):
        """Setting again replaces the key."""
        set_stored_api_key(in_memory_db, 'first')
        set_stored_api_key(in_memory_db, 'second')

        assert get_stored_api_key(in_memory_db) == 'second'
        count = in_memory_db.execute(
            "SELECT COUNT(*) FROM settings WHERE key = ?", (STORAGE_KEY,)
        ).fetchone()[0]
        assert count == 1

    def test_empty_key_rejected(self, in_memory_db):
        with pytest.raises(CredentialStoreError, match="non-empty"):
            set_stored_api_key(in_memory_db, '   ')

    def test_whitespace_row_reads_as_none(self, in_memory_db):
        """A blank value written by hand counts as no key."""
        in_memory_db.execute("INSERT INTO settings (key, value) VALUES (?, ?)", (STORAGE_KEY, ' '))

        assert get_stored_api_key(in_memory_db) is None

