"""Tests for SQLiteMetadataStore."""

import sqlite3
from datetime import UTC, datetime

import pytest
from markdown_index_sync.models import ArticleRecord, Document, InitializationError, StoreReadError, StoreWriteError
from markdown_index_sync.storage import SQLiteMetadataStore


@pytest.fixture
def store(tmp_path):
    """Create a temporary store for testing."""
    store = SQLiteMetadataStore(tmp_path / "idx.db")
    yield store
    store.close()


def make_document(path, fingerprint="5d41402abc4b2a76b9719d911017c592", modified_at=None):
    return Document(
        path=str(path),
        root=str(path.parent),
        fingerprint=fingerprint,
        modified_at=modified_at or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC),
    )


class TestSchema:
    """Test store initialization and schema."""

    def test_init_creates_database(self, tmp_path):
        db_path = tmp_path / "nested" / "idx.db"
        assert not db_path.exists()

        store = SQLiteMetadataStore(db_path)

        assert db_path.exists()
        assert store.db_path == db_path
        store.close()

    def test_schema_columns(self, store):
        columns = {row["name"] for row in store.connection.execute("PRAGMA table_info(articles)")}

        assert columns == {"id", "path", "fingerprint", "modified_at"}

    def test_reopen_keeps_rows(self, tmp_path):
        db_path = tmp_path / "idx.db"
        first = SQLiteMetadataStore(db_path)
        first.insert(make_document(tmp_path / "a.md"))
        first.close()

        second = SQLiteMetadataStore(db_path)

        assert second.count() == 1
        second.close()

    def test_unusable_path_is_fatal(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(InitializationError) as exc_info:
            SQLiteMetadataStore(blocker / "idx.db")

        assert exc_info.value.context["component"] == "metadata_store"

    def test_sqlite_version(self, store):
        assert store.sqlite_version == sqlite3.sqlite_version


class TestFindInsertUpdate:
    """Test lookups and writes."""

    def test_find_missing_returns_none(self, store):
        assert store.find("/nowhere.md") is None

    def test_insert_assigns_increasing_ids(self, store, tmp_path):
        first = store.insert(make_document(tmp_path / "a.md"))
        second = store.insert(make_document(tmp_path / "b.md"))

        assert first.id == 1
        assert second.id == 2

    def test_insert_then_find(self, store, tmp_path):
        doc = make_document(tmp_path / "a.md")

        inserted = store.insert(doc)
        found = store.find(doc.path)

        assert found == inserted
        assert found.fingerprint == doc.fingerprint
        assert found.modified_at == doc.modified_at

    def test_update_overwrites_fingerprint(self, store, tmp_path):
        record = store.insert(make_document(tmp_path / "a.md"))
        changed = ArticleRecord(
            id=record.id,
            path=record.path,
            fingerprint="7d793037a0760186574b0282f2f435e7",
            modified_at=datetime(2024, 2, 1, tzinfo=UTC),
        )

        affected = store.update(changed)

        assert affected == 1
        found = store.find(record.path)
        assert found.id == record.id
        assert found.fingerprint == "7d793037a0760186574b0282f2f435e7"
        assert found.modified_at == datetime(2024, 2, 1, tzinfo=UTC)

    def test_update_unknown_id_affects_nothing(self, store, tmp_path):
        record = ArticleRecord.from_document(make_document(tmp_path / "a.md"), id=42)

        assert store.update(record) == 0

    def test_default_timestamp_is_readable(self, store):
        store.connection.execute("INSERT INTO articles (path, fingerprint) VALUES (?, ?)", ("/legacy.md", "abc"))
        store.connection.commit()

        record = store.find("/legacy.md")

        assert record.modified_at.tzinfo is not None

    def test_query_error_is_read_error(self, store):
        store.connection.execute("DROP TABLE articles")

        with pytest.raises(StoreReadError):
            store.find("/a.md")

    def test_write_error_is_write_error(self, store, tmp_path):
        store.connection.execute("DROP TABLE articles")

        with pytest.raises(StoreWriteError) as exc_info:
            store.insert(make_document(tmp_path / "a.md"))

        assert exc_info.value.context["operation"] == "insert"


class TestDelete:
    """Test deletes and resets."""

    def test_delete_existing(self, store, tmp_path):
        doc = make_document(tmp_path / "a.md")
        store.insert(doc)

        assert store.delete(doc.path) is True
        assert store.find(doc.path) is None

    def test_delete_is_idempotent(self, store):
        assert store.delete("/never-tracked.md") is False
        assert store.delete("/never-tracked.md") is False

    def test_drop_all(self, store, tmp_path):
        store.insert(make_document(tmp_path / "a.md"))
        store.insert(make_document(tmp_path / "b.md"))

        removed = store.drop_all()

        assert removed == 2
        assert store.count() == 0

    def test_records_in_id_order(self, store, tmp_path):
        store.insert(make_document(tmp_path / "b.md"))
        store.insert(make_document(tmp_path / "a.md"))

        paths = [record.path for record in store.records()]

        assert paths == [str(tmp_path / "b.md"), str(tmp_path / "a.md")]
