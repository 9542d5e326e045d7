"""Tests for the SQLite state store."""

import sqlite3
from contextlib import closing

import pytest
from profile_sync import ProfileDocumentError
from profile_sync import SQLiteStateStore


@pytest.fixture
def db_path(temp_paths):
    return temp_paths.state_db


class TestSQLiteStateStore:
    """Test SQLiteStateStore."""

    def test_missing_database(self, db_path):
        """Test reading a database that doesn't exist gives nothing."""
        assert SQLiteStateStore(db_path).read_items(["a"], ["workbench."]) == {}
        assert not db_path.exists()

    def test_write_then_read(self, db_path):
        """Test rows written are read back by key and prefix."""
        store = SQLiteStateStore(db_path)
        store.write_items({"a.b": "1", "workbench.panel": "bottom", "other": "x", "c.d": {"n": 1}})

        items = store.read_items(["a.b", "c.d"], ["workbench."])

        assert items == {"a.b": "1", "workbench.panel": "bottom", "c.d": '{"n": 1}'}

    def test_replace_existing(self, db_path):
        store = SQLiteStateStore(db_path)
        store.write_items({"a": "1"})
        store.write_items({"a": "2"})

        assert store.read_items(["a"], []) == {"a": "2"}

    def test_prefix_wildcards_escaped(self, db_path):
        """Test LIKE wildcards in prefixes match literally."""
        store = SQLiteStateStore(db_path)
        store.write_items({"work_x": "1", "workAx": "2"})

        assert store.read_items([], ["work_"]) == {"work_x": "1"}

    def test_blob_values_decoded(self, db_path):
        """Test binary values written by the editor are decoded."""
        db_path.parent.mkdir(parents=True)
        with closing(sqlite3.connect(str(db_path))) as conn:
            with conn:
                conn.execute("CREATE TABLE ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)")
                conn.execute("INSERT INTO ItemTable VALUES (?, ?)", ("k", b"value"))

        assert SQLiteStateStore(db_path).read_items(["k"], []) == {"k": "value"}

    def test_corrupt_database(self, db_path):
        """Test a file that isn't a database raises a document error."""
        db_path.parent.mkdir(parents=True)
        db_path.write_text("not a database" * 100)

        with pytest.raises(ProfileDocumentError):
            SQLiteStateStore(db_path).read_items(["k"], [])
