"""Test configuration utilities and shared fixtures."""

import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

# Keep the project importable without an editable install, and keep test runs
# from writing log files.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.environ.setdefault("MSGSOURCE_LOG_MODE", "off")

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from msgsource.core import database as db  # noqa: E402
from msgsource.core.repository import CatalogueRepository  # noqa: E402
from msgsource.core.schema import create_catalogue, initialize_database  # noqa: E402
from msgsource.source import MessageSource  # noqa: E402
from msgsource.web import create_app  # noqa: E402


class RecordingCache:
    """In-memory ``MessageCache`` that remembers every call."""

    def __init__(self) -> None:
        self.values: Dict[str, Any] = {}
        self.stored_at: Dict[str, int] = {}
        self.removed: List[str] = []
        self.sets: List[str] = []

    def get(self, key: str) -> Optional[Any]:
        return self.values.get(key)

    def set(self, key: str, value: Any) -> None:
        self.sets.append(key)
        self.values[key] = value
        self.stored_at[key] = int(time.time())

    def remove(self, key: str) -> None:
        self.removed.append(key)
        self.values.pop(key, None)
        self.stored_at.pop(key, None)

    def get_last_modified(self, key: str) -> int:
        return self.stored_at.get(key, 0)


@pytest.fixture(autouse=True)
def db_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every test at a fresh, initialised database file."""

    path = tmp_path / "messages.db"
    monkeypatch.setenv(db.DB_FILE_ENV, str(path))
    initialize_database()
    return path


@pytest.fixture()
def repository() -> CatalogueRepository:
    return CatalogueRepository()


@pytest.fixture()
def cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture()
def source(repository: CatalogueRepository, cache: RecordingCache) -> MessageSource:
    return MessageSource(repository, cache, locale="en")


@pytest.fixture()
def messages_en() -> int:
    """An empty ``messages.en`` catalogue."""

    return create_catalogue("messages.en", source_lang="en", target_lang="en")


@pytest.fixture()
def app(cache: RecordingCache) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(cache=cache)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()


def catalogue_row(name: str) -> Dict[str, Any]:
    """Read a catalogue row directly from the database."""

    with db.get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT cat_id, name, date_modified FROM catalog WHERE name = ?", (name,)
        )
        row = cursor.fetchone()
    return {"cat_id": row[0], "name": row[1], "date_modified": row[2]}


def unit_rows(cat_id: int) -> List[tuple]:
    """Read ``(id, source, target, comments, date_added, translated)`` rows ordered by id."""

    with db.get_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT id, source, target, comments, date_added, translated
            FROM translation_unit WHERE cat_id = ? ORDER BY id, msg_id
            """,
            (cat_id,),
        )
        return cursor.fetchall()


def insert_unit_row(cat_id: int, unit_id: int, source: str, target: str = "",
                    comments: str = "") -> None:
    """Insert a translation unit bypassing the repository."""

    with db.get_connection() as conn:
        conn.execute(
            """
            INSERT INTO translation_unit (cat_id, id, source, target, comments)
            VALUES (?, ?, ?, ?, ?)
            """,
            (cat_id, unit_id, source, target, comments),
        )
        conn.commit()
