"""
Database Connection Module

This module provides:
- The scoped connection factory shared by the catalogue repository and schema code
- App Config CRUD operations

For schema management and migrations, see core/schema.py
For catalogue and translation unit queries, see core/repository.py
"""

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from msgsource.exceptions import StorageError

DB_FILE = Path(__file__).parent.parent.parent / "messages.db"
DB_FILE_ENV = "MSGSOURCE_DB_FILE"


def get_db_file() -> Path:
    """Return the database path, honouring the environment override."""
    override = os.environ.get(DB_FILE_ENV)
    return Path(override) if override else Path(DB_FILE)


@contextmanager
def get_connection() -> Iterator[sqlite3.Connection]:
    """
    Get a database connection that is closed when the block exits.

    Uncommitted work is discarded on exit. ``sqlite3.IntegrityError`` is
    re-raised untouched so callers can treat a rejected row as a per-item
    failure; every other ``sqlite3.Error`` becomes a ``StorageError``.
    """
    db_file = get_db_file()
    try:
        conn = sqlite3.connect(db_file)
    except sqlite3.Error as e:
        raise StorageError(f"Cannot open database {db_file}: {e}", code="connect_failed") from e

    try:
        conn.execute("PRAGMA foreign_keys = ON")
        yield conn
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as e:
        raise StorageError(f"Database error: {e}", code="query_failed") from e
    finally:
        conn.close()


# ============================================================
# App Config CRUD Operations
# ============================================================

def get_app_config(key: str) -> Optional[str]:
    """Get a configuration value by key."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT value FROM app_config WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row[0] if row else None


def set_app_config(key: str, value: str):
    """Set a configuration value."""
    with get_connection() as conn:
        cursor = conn.cursor()
        # Ensure app_config table exists
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS app_config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        cursor.execute("""
            INSERT OR REPLACE INTO app_config (key, value, updated_at)
            VALUES (?, ?, ?)
        """, (key, value, datetime.now().isoformat(sep=' ')))
        conn.commit()
