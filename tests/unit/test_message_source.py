"""Tests for MessageSource reads and mutations."""

from __future__ import annotations

import time

import pytest

from conftest import RecordingCache, catalogue_row, insert_unit_row, unit_rows
from msgsource.core.repository import CatalogueRepository
from msgsource.core import database as db
from msgsource.core.schema import create_catalogue
from msgsource.exceptions import StorageError
from msgsource.source import MessageSource


@pytest.fixture()
def clock(monkeypatch: pytest.MonkeyPatch):
    """Controllable replacement for ``time.time``."""

    class Clock:
        now = 1_700_000_000

        def __call__(self) -> float:
            return float(self.now)

    fake = Clock()
    monkeypatch.setattr(time, "time", fake)
    return fake


class CountingRepository(CatalogueRepository):
    """Repository that records which write operations were attempted."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []
        self.reject: set[str] = set()

    def insert_unit(self, cat_id, sequence, source, created_at, author=""):
        self.writes.append(f"insert:{source}")
        if source in self.reject:
            return False
        return super().insert_unit(cat_id, sequence, source, created_at, author=author)

    def touch_catalogue(self, cat_id, modified_at):
        self.writes.append("touch")
        return super().touch_catalogue(cat_id, modified_at)


class FlakyRepository(CatalogueRepository):
    """Repository whose storage fails on the n-th insert."""

    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.inserts = 0

    def insert_unit(self, cat_id, sequence, source, created_at, author=""):
        self.inserts += 1
        if self.inserts == self.fail_on:
            raise StorageError("disk I/O error", code="query_failed")
        return super().insert_unit(cat_id, sequence, source, created_at, author=author)


# ============================================================
# Reading
# ============================================================

def test_is_valid_source(source: MessageSource) -> None:
    create_catalogue("messages.en")

    assert source.is_valid_source("messages.en") is True
    assert source.is_valid_source("messages.fr") is False


def test_catalogues_split_names_in_stored_order(source: MessageSource) -> None:
    for name in ("messages.en", "messages.fr", "admin"):
        create_catalogue(name)

    assert source.catalogues() == [("admin", None), ("messages", "en"), ("messages", "fr")]


def test_load_data_counts_every_unit(source: MessageSource, messages_en: int) -> None:
    for unit_id, text in enumerate(["a", "b", "c", "d"], start=1):
        insert_unit_row(messages_en, unit_id, text)

    table = source.load_data("messages.en")

    assert sum(len(values) // 3 for values in table.values()) == 4
    assert [values[1] for values in table.values()] == [1, 2, 3, 4]


def test_load_walks_locale_fallback_chain(source: MessageSource, cache: RecordingCache) -> None:
    en = create_catalogue("messages.en")
    us = create_catalogue("messages.en_US")
    insert_unit_row(en, 1, "Colour", "Colour")
    insert_unit_row(us, 1, "Colour", "Color")

    loaded = source.load("messages", "en_US")

    assert list(loaded) == ["messages.en_US", "messages.en"]
    assert loaded["messages.en_US"]["Colour"][0] == "Color"
    assert cache.sets == ["messages.en_US:en_US", "messages.en:en_US"]


def test_load_skips_missing_variants(source: MessageSource, messages_en: int) -> None:
    assert source.load("messages", "en_GB") == {"messages.en": {}}
    assert source.load("admin", "en") == {}


def test_load_uses_fresh_cache_entry(source: MessageSource, cache: RecordingCache,
                                     messages_en: int, clock) -> None:
    insert_unit_row(messages_en, 1, "Hello", "Hi")
    source.store.touch_catalogue(messages_en, clock.now)

    clock.now += 10
    source.load("messages", "en")
    cache.values["messages.en:en"] = {"Hello": ["cached", 1, ""]}

    assert source.load("messages", "en")["messages.en"] == {"Hello": ["cached", 1, ""]}
    assert cache.sets == ["messages.en:en"]


def test_load_refreshes_stale_cache_entry(source: MessageSource, cache: RecordingCache,
                                          messages_en: int, clock) -> None:
    insert_unit_row(messages_en, 1, "Hello", "Hi")
    cache.values["messages.en:en"] = {"Hello": ["stale", 1, ""]}
    cache.stored_at["messages.en:en"] = clock.now
    source.store.touch_catalogue(messages_en, clock.now + 5)

    assert source.load("messages", "en")["messages.en"] == {"Hello": ["Hi", 1, ""]}
    assert cache.values["messages.en:en"] == {"Hello": ["Hi", 1, ""]}


def test_read_is_load(source: MessageSource, messages_en: int) -> None:
    assert source.read("messages", "en") == source.load("messages", "en")


# ============================================================
# save
# ============================================================

def test_save_appends_numbered_untranslated_units(source: MessageSource, cache: RecordingCache,
                                                  messages_en: int, clock) -> None:
    assert source.save(["Hello", "World"], "messages", "en") is True

    assert unit_rows(messages_en) == [
        (1, "Hello", "", "", clock.now, 0),
        (2, "World", "", "", clock.now, 0),
    ]
    assert catalogue_row("messages.en")["date_modified"] == clock.now
    assert cache.removed == ["messages.en:en"]


def test_save_continues_numbering_from_unit_count(source: MessageSource, messages_en: int) -> None:
    insert_unit_row(messages_en, 1, "Hello")

    assert source.save(["World"]) is True

    assert [row[0] for row in unit_rows(messages_en)] == [1, 2]


def test_save_with_empty_list_writes_nothing(messages_en: int, cache: RecordingCache) -> None:
    repository = CountingRepository()
    source = MessageSource(repository, cache)

    assert source.save([], "messages", "en") is False

    assert repository.writes == []
    assert cache.removed == []


def test_save_to_missing_catalogue_fails(source: MessageSource, cache: RecordingCache) -> None:
    assert source.save(["Hello"], "messages", "fr") is False
    assert cache.removed == []


def test_save_tolerates_individual_insert_failures(messages_en: int, cache: RecordingCache) -> None:
    repository = CountingRepository()
    repository.reject.add("World")
    source = MessageSource(repository, cache)

    assert source.save(["Hello", "World", "Again"]) is True

    assert [row[:2] for row in unit_rows(messages_en)] == [(1, "Hello"), (3, "Again")]
    assert repository.writes == ["insert:Hello", "insert:World", "insert:Again", "touch"]


def test_save_with_every_insert_failing_does_not_touch(messages_en: int,
                                                       cache: RecordingCache) -> None:
    repository = CountingRepository()
    repository.reject.update({"Hello", "World"})
    source = MessageSource(repository, cache)

    assert source.save(["Hello", "World"]) is False

    assert "touch" not in repository.writes
    assert cache.removed == []
    assert catalogue_row("messages.en")["date_modified"] == 0


def test_save_messages_reports_inserted_count(messages_en: int, cache: RecordingCache) -> None:
    repository = CountingRepository()
    repository.reject.add("World")
    source = MessageSource(repository, cache)

    assert source.save_messages(["Hello", "World", "Again"]) == 2
    assert source.save_messages([]) == 0


def test_save_interrupted_by_storage_fault_still_invalidates(messages_en: int, cache: RecordingCache,
                                                             clock) -> None:
    source = MessageSource(FlakyRepository(fail_on=2), cache)
    source.append("Hello")
    source.append("World")

    with pytest.raises(StorageError):
        source.save()

    assert [row[1] for row in unit_rows(messages_en)] == ["Hello"]
    assert catalogue_row("messages.en")["date_modified"] == clock.now
    assert cache.removed == ["messages.en:en"]
    assert source.untranslated == ["Hello", "World"]


def test_save_failing_on_first_insert_leaves_catalogue_untouched(messages_en: int,
                                                                 cache: RecordingCache) -> None:
    source = MessageSource(FlakyRepository(fail_on=1), cache)

    with pytest.raises(StorageError):
        source.save(["Hello"])

    assert unit_rows(messages_en) == []
    assert catalogue_row("messages.en")["date_modified"] == 0
    assert cache.removed == []


def test_save_flushes_appended_messages(source: MessageSource, messages_en: int) -> None:
    source.append("Hello")
    source.append("World")
    source.append("Hello")

    assert source.untranslated == ["Hello", "World"]
    assert source.save() is True
    assert source.untranslated == []
    assert [row[1] for row in unit_rows(messages_en)] == ["Hello", "World"]


def test_save_keeps_buffer_when_nothing_was_saved(source: MessageSource) -> None:
    source.append("Hello")

    assert source.save(catalogue="missing") is False
    assert source.untranslated == ["Hello"]


def test_locale_defaults_to_source_locale(repository: CatalogueRepository,
                                          cache: RecordingCache) -> None:
    cat_id = create_catalogue("messages.fr")
    source = MessageSource(repository, cache, locale="fr")

    assert source.save(["Bonjour"]) is True
    assert repository.count_units(cat_id) == 1
    assert cache.removed == ["messages.fr:fr"]


# ============================================================
# update
# ============================================================

def test_update_twice_succeeds_and_moves_modified_time(source: MessageSource, cache: RecordingCache,
                                                       messages_en: int, clock) -> None:
    insert_unit_row(messages_en, 1, "Hello")

    assert source.update("Hello", "Hi", "greeting", "messages", "en") is True
    assert catalogue_row("messages.en")["date_modified"] == clock.now

    clock.now += 60
    assert source.update("Hello", "Hi", "greeting", "messages", "en") is True
    assert catalogue_row("messages.en")["date_modified"] == clock.now
    assert cache.removed == ["messages.en:en", "messages.en:en"]


def test_update_of_unknown_source_has_no_side_effects(source: MessageSource, cache: RecordingCache,
                                                      messages_en: int) -> None:
    assert source.update("Missing", "x", "") is False

    assert catalogue_row("messages.en")["date_modified"] == 0
    assert cache.removed == []


def test_update_of_duplicated_source_fails(source: MessageSource, cache: RecordingCache,
                                           messages_en: int) -> None:
    insert_unit_row(messages_en, 1, "Hello")
    insert_unit_row(messages_en, 2, "Hello")

    assert source.update("Hello", "Hi", "") is False
    assert [row[2] for row in unit_rows(messages_en)] == ["", ""]
    assert cache.removed == []


def test_update_in_missing_catalogue_fails(source: MessageSource) -> None:
    assert source.update("Hello", "Hi", "", "messages", "de") is False


def test_update_with_none_target_stores_empty_translation(source: MessageSource, messages_en: int) -> None:
    insert_unit_row(messages_en, 1, "Hello", "Hi", "greeting")

    assert source.update("Hello", None, None) is True
    assert unit_rows(messages_en) == [(1, "Hello", "", "", 0, 0)]


def test_storage_faults_propagate_from_update_and_delete(cache: RecordingCache, messages_en: int) -> None:
    insert_unit_row(messages_en, 1, "Hello")

    def unavailable():
        raise StorageError("unable to open database file", code="connect_failed")

    source = MessageSource(CatalogueRepository(unavailable), cache)

    with pytest.raises(StorageError):
        source.update("Hello", "Hi")
    with pytest.raises(StorageError):
        source.delete("Hello")

    assert unit_rows(messages_en) == [(1, "Hello", "", "", 0, 0)]
    assert cache.removed == []


# ============================================================
# delete
# ============================================================

def test_delete_removes_unit_and_invalidates(source: MessageSource, cache: RecordingCache,
                                             messages_en: int, clock) -> None:
    insert_unit_row(messages_en, 1, "Hello")

    assert source.delete("Hello", "messages", "en") is True

    assert unit_rows(messages_en) == []
    assert catalogue_row("messages.en")["date_modified"] == clock.now
    assert cache.removed == ["messages.en:en"]


def test_delete_of_absent_source_keeps_modified_time(source: MessageSource, cache: RecordingCache,
                                                     messages_en: int) -> None:
    source.store.touch_catalogue(messages_en, 1_600_000_000)

    assert source.delete("Missing") is False

    assert catalogue_row("messages.en")["date_modified"] == 1_600_000_000
    assert cache.removed == []


def test_delete_in_missing_catalogue_fails(source: MessageSource) -> None:
    assert source.delete("Hello", "admin", "en") is False


# ============================================================
# Round trip
# ============================================================

def test_append_update_then_load(source: MessageSource, messages_en: int) -> None:
    assert source.save(["Welcome"]) is True
    assert source.update("Welcome", "Welcome aboard", "home page") is True

    table = source.load_data("messages.en")

    assert table["Welcome"][0] == "Welcome aboard"
    assert table["Welcome"][1:] == [1, "home page"]


# ============================================================
# Configured defaults
# ============================================================

def _unit_authors(cat_id: int) -> list:
    with db.get_connection() as conn:
        cursor = conn.execute(
            "SELECT source, author FROM translation_unit WHERE cat_id = ? ORDER BY id", (cat_id,)
        )
        return cursor.fetchall()


def test_author_is_recorded_on_insert_and_update(repository: CatalogueRepository,
                                                 cache: RecordingCache, messages_en: int) -> None:
    assert MessageSource(repository, cache, author="team").save(["Hello", "World"]) is True
    assert MessageSource(repository, cache, author="reviewer").update("World", "Monde") is True

    assert _unit_authors(messages_en) == [("Hello", "team"), ("World", "reviewer")]


def test_configured_catalogue_is_used_when_none_given(repository: CatalogueRepository,
                                                      cache: RecordingCache) -> None:
    cat_id = create_catalogue("admin.en")
    source = MessageSource(repository, cache, catalogue="admin")

    assert source.save(["Users"]) is True

    assert [row[1] for row in unit_rows(cat_id)] == ["Users"]
    assert list(source.load()) == ["admin.en"]
    assert cache.removed == ["admin.en:en"]


def test_empty_locale_addresses_bare_catalogue(source: MessageSource, cache: RecordingCache) -> None:
    cat_id = create_catalogue("admin")

    assert source.save(["Users"], "admin", "") is True
    assert source.update("Users", "Utilisateurs", "", "admin", "") is True

    assert unit_rows(cat_id)[0][:3] == (1, "Users", "Utilisateurs")
    assert list(source.load("admin", "")) == ["admin"]
    assert cache.removed == ["admin:", "admin:"]
