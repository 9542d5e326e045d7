"""SQLite implementation of the editor's key-value state store."""

import json
import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any

from .exceptions import ProfileDocumentError

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteStateStore:
    """Reads and writes the `ItemTable` of an editor state database.

    Args:
        db_path: Path to the SQLite database (usually `state.vscdb`)
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def read_items(self, keys: list[str], prefixes: list[str]) -> dict[str, Any]:
        """Read rows by exact key or key prefix.

        Returns:
            Mapping of key to value; empty when the database doesn't exist
        """
        if not self.db_path.exists() or not (keys or prefixes):
            return {}

        conditions = []
        params: list[str] = []
        if keys:
            conditions.append(f"key IN ({', '.join('?' for _ in keys)})")
            params.extend(keys)
        for prefix in prefixes:
            conditions.append("key LIKE ? ESCAPE '\\'")
            params.append(f"{_escape_like(prefix)}%")

        query = f"SELECT key, value FROM ItemTable WHERE {' OR '.join(conditions)}"

        try:
            with closing(sqlite3.connect(str(self.db_path))) as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise ProfileDocumentError(f"Failed to read state database {self.db_path}: {e}") from e

        items = {}
        for key, value in rows:
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            items[key] = value

        logger.debug(f"Read {len(items)} items from {self.db_path}")
        return items

    def write_items(self, items: dict[str, Any]) -> None:
        """Insert or replace rows; non-text values are stored as JSON."""
        if not items:
            return

        rows = [(key, value if isinstance(value, str) else json.dumps(value)) for key, value in items.items()]

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with closing(sqlite3.connect(str(self.db_path))) as conn:
                with conn:
                    conn.execute("CREATE TABLE IF NOT EXISTS ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)")
                    conn.executemany("INSERT OR REPLACE INTO ItemTable (key, value) VALUES (?, ?)", rows)
        except sqlite3.Error as e:
            raise ProfileDocumentError(f"Failed to write state database {self.db_path}: {e}") from e

        logger.debug(f"Wrote {len(rows)} items to {self.db_path}")
