"""
Database Schema Management Module

This module handles database initialization, schema validation, migrations
and catalogue provisioning.
For translation unit queries, see core/repository.py
"""

import time

# Import database module to use get_connection dynamically
# This ensures monkeypatching in tests works correctly
import msgsource.core.database as db
from msgsource.exceptions import StorageError

DB_VERSION = 2  # Increment when schema changes (v2 added the translated flag)


def get_connection():
    """Get a database connection using the database module's factory."""
    return db.get_connection()


def get_db_version() -> int:
    """Get current database version."""
    try:
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT version FROM db_version LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else 0
    except StorageError:
        return 0


def set_db_version(version: int):
    """Set database version."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("CREATE TABLE IF NOT EXISTS db_version (version INTEGER)")
        cursor.execute("DELETE FROM db_version")
        cursor.execute("INSERT INTO db_version (version) VALUES (?)", (version,))
        conn.commit()


def table_exists(table: str) -> bool:
    """Check whether a table is present in the database."""
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = ?", (table,))
        return cursor.fetchone()[0] > 0


def initialize_database():
    """Initializes the database and creates the tables."""
    from msgsource.logger import get_logger
    logger = get_logger(__name__)

    if db.get_db_file().exists() and table_exists("catalog"):
        current_version = get_db_version()
        if current_version < DB_VERSION:
            migrate_database(current_version, DB_VERSION)
        elif current_version == DB_VERSION:
            # Verify that all required columns exist
            try:
                ensure_all_schemas()
            except Exception as e:
                logger.warning(f"Failed to verify catalogue schema: {e}")
        return

    logger.info(f"Creating catalogue database at {db.get_db_file()}")

    with get_connection() as conn:
        cursor = conn.cursor()

        # Create catalog table
        cursor.execute("""
        CREATE TABLE catalog (
            cat_id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            source_lang TEXT NOT NULL DEFAULT '',
            target_lang TEXT NOT NULL DEFAULT '',
            date_created INTEGER NOT NULL DEFAULT 0,
            date_modified INTEGER NOT NULL DEFAULT 0,
            author TEXT NOT NULL DEFAULT ''
        )
        """)

        # Create translation_unit table
        cursor.execute("""
        CREATE TABLE translation_unit (
            msg_id INTEGER PRIMARY KEY AUTOINCREMENT,
            cat_id INTEGER NOT NULL,
            id INTEGER NOT NULL,
            source TEXT NOT NULL,
            target TEXT NOT NULL DEFAULT '',
            comments TEXT NOT NULL DEFAULT '',
            date_added INTEGER NOT NULL DEFAULT 0,
            date_modified INTEGER NOT NULL DEFAULT 0,
            author TEXT NOT NULL DEFAULT '',
            translated INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY (cat_id) REFERENCES catalog (cat_id) ON DELETE CASCADE
        )
        """)

        # Create app_config table
        cursor.execute("""
        CREATE TABLE IF NOT EXISTS app_config (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """)

        conn.commit()

    ensure_database_indexes()
    set_db_version(DB_VERSION)


# ============================================================
# Database Schema Validation
# ============================================================

def ensure_translation_unit_schema():
    """
    Ensure translation_unit table has all required columns.
    This function should be called during database initialization/migration.
    """
    from msgsource.logger import get_logger
    logger = get_logger(__name__)

    try:
        with get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("PRAGMA table_info(translation_unit)")
            existing_cols = {row[1] for row in cursor.fetchall()}

            if "translated" not in existing_cols:
                logger.info("Adding translated column to translation_unit table")
                cursor.execute("ALTER TABLE translation_unit ADD COLUMN translated INTEGER NOT NULL DEFAULT 0")
                cursor.execute("UPDATE translation_unit SET translated = 1 WHERE target != ''")

            if "author" not in existing_cols:
                logger.info("Adding author column to translation_unit table")
                cursor.execute("ALTER TABLE translation_unit ADD COLUMN author TEXT NOT NULL DEFAULT ''")

            conn.commit()
    except Exception as e:
        logger.error(f"Failed to ensure translation_unit schema: {e}")
        raise


def ensure_database_indexes():
    """
    Ensure all performance-critical indexes exist.
    This function should be called during database initialization/migration.
    """
    from msgsource.logger import get_logger
    logger = get_logger(__name__)

    try:
        with get_connection() as conn:
            cursor = conn.cursor()

            # Loader join and ordering
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_translation_unit_cat_id
                ON translation_unit(cat_id, id)
            """)

            # Update and delete target units by (cat_id, source)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_translation_unit_source
                ON translation_unit(cat_id, source)
            """)

            conn.commit()
            logger.debug("Database indexes created/verified successfully")
    except Exception as e:
        logger.error(f"Failed to ensure database indexes: {e}")
        raise


def ensure_all_schemas():
    """
    Ensure all tables have all required columns and indexes.
    """
    ensure_translation_unit_schema()
    ensure_database_indexes()


# ============================================================
# Database Migration
# ============================================================

def migrate_database(from_version: int, to_version: int):
    """
    Migrate database from one version to another.

    Every known migration is additive, so bringing the schema up to date is
    enough for any version mismatch.
    """
    from msgsource.logger import get_logger
    logger = get_logger(__name__)

    logger.info(f"Migrating database from version {from_version} to {to_version}")

    ensure_all_schemas()
    set_db_version(to_version)

    logger.info(f"Database migration completed: now at version {to_version}")


# ============================================================
# Catalogue Provisioning
# ============================================================

def create_catalogue(name: str, source_lang: str = "", target_lang: str = "",
                     author: str = "") -> int:
    """Create a new catalogue row and return its id."""
    now = int(time.time())
    with get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO catalog (name, source_lang, target_lang, date_created, date_modified, author)
            VALUES (?, ?, ?, ?, 0, ?)
        """, (name, source_lang, target_lang, now, author))
        conn.commit()
        return cursor.lastrowid
