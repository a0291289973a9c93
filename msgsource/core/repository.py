"""
Catalogue Repository Module

Raw persistence operations for catalogues and their translation units.
Every value reaches sqlite as a bound parameter.

Update and delete target a unit by (cat_id, source). A statement that matches
anything other than exactly one row is rolled back, so a duplicated source
string can never cause a mass mutation.
"""

import sqlite3
from typing import Any, Callable, ContextManager, Dict, List, Optional, Protocol, Tuple

import msgsource.core.database as db
from msgsource.logger import get_logger

logger = get_logger(__name__)

ConnectionFactory = Callable[[], ContextManager[sqlite3.Connection]]

# (id, source, target, comments)
UnitRow = Tuple[int, str, str, str]


class CatalogueStore(Protocol):
    """Persistence operations the message source depends on."""

    def resolve_catalogue(self, name: str) -> Tuple[int, bool]: ...

    def count_units(self, cat_id: int) -> int: ...

    def catalogue_modified_at(self, name: str) -> int: ...

    def catalogue_exists(self, name: str) -> bool: ...

    def insert_unit(self, cat_id: int, sequence: int, source: str, created_at: int,
                    author: str = "") -> bool: ...

    def delete_unit(self, cat_id: int, source: str) -> int: ...

    def update_unit(self, cat_id: int, source: str, target: str, comments: str,
                    modified_at: int, author: str = "") -> int: ...

    def touch_catalogue(self, cat_id: int, modified_at: int) -> bool: ...

    def list_catalogue_names(self) -> List[str]: ...

    def get_catalogue(self, name: str) -> Optional[Dict[str, Any]]: ...

    def fetch_units(self, name: str) -> List[UnitRow]: ...


def _default_connection():
    # Resolved per call so tests can monkeypatch the database module
    return db.get_connection()


class CatalogueRepository:
    """sqlite implementation of ``CatalogueStore``."""

    def __init__(self, connection_factory: Optional[ConnectionFactory] = None):
        self.connect = connection_factory or _default_connection

    # ============================================================
    # Catalogue lookups
    # ============================================================

    def resolve_catalogue(self, name: str) -> Tuple[int, bool]:
        """Return ``(cat_id, True)`` when exactly one catalogue has ``name``, else ``(0, False)``."""
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT cat_id FROM catalog WHERE name = ?", (name,))
            rows = cursor.fetchall()

        if len(rows) != 1:
            if rows:
                logger.warning(f"Catalogue name {name!r} matches {len(rows)} rows")
            return 0, False
        return int(rows[0][0]), True

    def get_catalogue(self, name: str) -> Optional[Dict[str, Any]]:
        """Get a catalogue row by name."""
        with self.connect() as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM catalog WHERE name = ?", (name,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def count_units(self, cat_id: int) -> int:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM translation_unit WHERE cat_id = ?", (cat_id,))
            return int(cursor.fetchone()[0])

    def catalogue_modified_at(self, name: str) -> int:
        """Last modified unix time of a catalogue, 0 when it does not exist."""
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT date_modified FROM catalog WHERE name = ?", (name,))
            row = cursor.fetchone()
            return int(row[0] or 0) if row else 0

    def catalogue_exists(self, name: str) -> bool:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM catalog WHERE name = ?", (name,))
            return cursor.fetchone()[0] == 1

    def list_catalogue_names(self) -> List[str]:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM catalog ORDER BY name")
            return [row[0] for row in cursor.fetchall()]

    def touch_catalogue(self, cat_id: int, modified_at: int) -> bool:
        """Set a catalogue's date_modified."""
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("UPDATE catalog SET date_modified = ? WHERE cat_id = ?",
                           (modified_at, cat_id))
            conn.commit()
            return cursor.rowcount == 1

    # ============================================================
    # Translation unit operations
    # ============================================================

    def fetch_units(self, name: str) -> List[UnitRow]:
        """All units of the named catalogue, ordered by message number."""
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT t.id, t.source, t.target, t.comments
                FROM translation_unit t
                JOIN catalog c ON c.cat_id = t.cat_id
                WHERE c.name = ?
                ORDER BY t.id ASC, t.msg_id ASC
            """, (name,))
            return [tuple(row) for row in cursor.fetchall()]

    def insert_unit(self, cat_id: int, sequence: int, source: str, created_at: int,
                    author: str = "") -> bool:
        """
        Insert an untranslated unit.

        Returns False when sqlite rejects the row; connection and query
        faults propagate as ``StorageError``.
        """
        with self.connect() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("""
                    INSERT INTO translation_unit (cat_id, id, source, date_added, author)
                    VALUES (?, ?, ?, ?, ?)
                """, (cat_id, sequence, source, created_at, author))
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                logger.warning(f"Rejected unit {sequence} for catalogue {cat_id}: {e}")
                return False
            return cursor.rowcount == 1

    def delete_unit(self, cat_id: int, source: str) -> int:
        """Delete the unit with ``source``; returns the number of rows matched."""
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM translation_unit WHERE cat_id = ? AND source = ?",
                           (cat_id, source))
            matched = cursor.rowcount
            if matched == 1:
                conn.commit()
            else:
                conn.rollback()
                if matched > 1:
                    logger.warning(f"Delete of {source!r} in catalogue {cat_id} matched {matched} rows, rolled back")
            return matched

    def update_unit(self, cat_id: int, source: str, target: str, comments: str,
                    modified_at: int, author: str = "") -> int:
        """Update the unit with ``source``; returns the number of rows matched."""
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE translation_unit
                SET target = ?, comments = ?, date_modified = ?, translated = ?, author = ?
                WHERE cat_id = ? AND source = ?
            """, (target, comments, modified_at, 1 if target else 0, author, cat_id, source))
            matched = cursor.rowcount
            if matched == 1:
                conn.commit()
            else:
                conn.rollback()
                if matched > 1:
                    logger.warning(f"Update of {source!r} in catalogue {cat_id} matched {matched} rows, rolled back")
            return matched
