"""
SQLite metadata store.

Persists, per tracked path, the fingerprint and modification time last
written locally together with the surrogate id the search service uses.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from markdown_index_sync.core.interfaces import IMetadataStore
from markdown_index_sync.models import ArticleRecord, Document, InitializationError, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        # CURRENT_TIMESTAMP defaults are written in UTC without an offset
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class SQLiteMetadataStore(IMetadataStore):
    """
    Metadata store backed by a single SQLite file.

    At most one row per path is kept by looking up before inserting; the
    indexer is the only writer, so no uniqueness constraint is declared.
    """

    def __init__(self, db_path: Path):
        """
        Open (or create) the store and its schema.

        Raises:
            InitializationError: If the database cannot be opened or the schema created
        """
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._ensure_schema()
        except (OSError, sqlite3.Error) as e:
            raise InitializationError(
                f"Cannot open metadata store {self.db_path}: {e}",
                component="metadata_store",
                initialization_stage="open",
                underlying_error=e,
            ) from e

        logger.info("Metadata store path: %s sqlite version: %s", self.db_path, self.sqlite_version)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @property
    def sqlite_version(self) -> str:
        return self._conn.execute("SELECT sqlite_version()").fetchone()[0]

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS articles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT,
                    fingerprint TEXT,
                    modified_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_articles_path ON articles(path)")

    def _to_record(self, row: sqlite3.Row) -> ArticleRecord:
        return ArticleRecord(
            id=row["id"],
            path=row["path"],
            fingerprint=row["fingerprint"] or "",
            modified_at=_parse_timestamp(row["modified_at"]),
        )

    def find(self, path: str) -> ArticleRecord | None:
        try:
            row = self._conn.execute(
                "SELECT id, path, fingerprint, modified_at FROM articles WHERE path = ? ORDER BY id LIMIT 1",
                (path,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreReadError(f"Query for {path} failed: {e}", operation="find", path=path, underlying_error=e) from e

        if row is None:
            return None
        return self._to_record(row)

    def insert(self, document: Document) -> ArticleRecord:
        try:
            with self.transaction() as conn:
                record_id = conn.execute(
                    "INSERT INTO articles (path, fingerprint, modified_at) VALUES (?, ?, ?)",
                    (document.path, document.fingerprint, document.modified_at.isoformat()),
                ).lastrowid
        except sqlite3.Error as e:
            raise StoreWriteError(
                f"Insert of {document.path} failed: {e}", operation="insert", path=document.path, underlying_error=e
            ) from e

        return ArticleRecord.from_document(document, id=record_id)

    def update(self, record: ArticleRecord) -> int:
        try:
            with self.transaction() as conn:
                cursor = conn.execute(
                    "UPDATE articles SET fingerprint = ?, modified_at = ? WHERE id = ?",
                    (record.fingerprint, record.modified_at.isoformat(), record.id),
                )
        except sqlite3.Error as e:
            raise StoreWriteError(
                f"Update of {record} failed: {e}", operation="update", path=record.path, underlying_error=e
            ) from e
        return cursor.rowcount

    def delete(self, path: str) -> bool:
        try:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM articles WHERE path = ?", (path,))
        except sqlite3.Error as e:
            raise StoreWriteError(f"Delete of {path} failed: {e}", operation="delete", path=path, underlying_error=e) from e
        return cursor.rowcount > 0

    def drop_all(self) -> int:
        try:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM articles")
        except sqlite3.Error as e:
            raise StoreWriteError(f"Clearing the store failed: {e}", operation="drop_all", underlying_error=e) from e
        logger.info("Removed %d records from the metadata store", cursor.rowcount)
        return cursor.rowcount

    def records(self) -> Iterator[ArticleRecord]:
        try:
            rows = self._conn.execute("SELECT id, path, fingerprint, modified_at FROM articles ORDER BY id").fetchall()
        except sqlite3.Error as e:
            raise StoreReadError(f"Listing records failed: {e}", operation="records", underlying_error=e) from e
        for row in rows:
            yield self._to_record(row)

    def count(self) -> int:
        try:
            return self._conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]
        except sqlite3.Error as e:
            raise StoreReadError(f"Counting records failed: {e}", operation="count", underlying_error=e) from e
