"""
Abstract interfaces for the synchronizer.

These interfaces define the contracts the indexer depends on, so the SQLite
store, the polling watcher and the HTTP client can be swapped (or mocked in
tests) without touching the orchestration logic.
"""

import asyncio
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator

from markdown_index_sync.models import (
    ArticleRecord,
    Document,
    MonitoringError,
    SearchQuery,
    SearchResponse,
    SyncOperation,
    SyncResult,
)


class IMetadataStore(ABC):
    """Interface for the durable path -> last synchronized state table."""

    @abstractmethod
    def find(self, path: str) -> ArticleRecord | None:
        """
        Look up the record for an exact path.

        Args:
            path: Tracked file path

        Returns:
            The record, or None if the path is not tracked

        Raises:
            StoreReadError: If the query itself fails
        """
        pass

    @abstractmethod
    def insert(self, document: Document) -> ArticleRecord:
        """
        Insert a record for a newly observed document.

        Returns:
            The stored record with its assigned surrogate id

        Raises:
            StoreWriteError: If the insert fails
        """
        pass

    @abstractmethod
    def update(self, record: ArticleRecord) -> int:
        """
        Overwrite fingerprint and modification time of an existing record.

        Returns:
            Number of rows affected

        Raises:
            StoreWriteError: If the update fails
        """
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """
        Delete the record for a path. Deleting an untracked path is not an error.

        Returns:
            True if a row was removed

        Raises:
            StoreWriteError: If the delete fails
        """
        pass

    @abstractmethod
    def drop_all(self) -> int:
        """Remove every record. Returns the number of rows removed."""
        pass

    @abstractmethod
    def records(self) -> Iterator[ArticleRecord]:
        """Iterate over all tracked records."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Get the number of tracked records."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection."""
        pass


class IFileWatcher(ABC):
    """Interface for a recursive, filtered change detector over the content root."""

    @abstractmethod
    def snapshot(self) -> dict[str, os.stat_result]:
        """Get every currently matched file under the root with its stat info."""
        pass

    @abstractmethod
    def start(self) -> None:
        """
        Start producing change events.

        Raises:
            MonitoringError: If watching cannot be started
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop watching and fire the closed signal."""
        pass

    @abstractmethod
    async def next_event(self):
        """Wait for the next change event."""
        pass

    @abstractmethod
    async def next_error(self) -> MonitoringError:
        """Wait for the next watcher-level error."""
        pass

    @property
    @abstractmethod
    def closed(self) -> asyncio.Event:
        """Signal set once the watcher has been torn down."""
        pass


class ISyncClient(ABC):
    """Interface for the stateless search-index service adapter."""

    @abstractmethod
    def push_index(self, record_id: int, text: str, path: str, title: str, fingerprint: str) -> SyncResult:
        """Submit document content and metadata for indexing or replacement."""
        pass

    @abstractmethod
    def push_remove(self, record_id: int) -> SyncResult:
        """Remove a previously indexed document."""
        pass

    @abstractmethod
    def drop_database(self) -> SyncResult:
        """Discard the whole index namespace."""
        pass

    @abstractmethod
    def dispatch(self, operation: SyncOperation) -> SyncResult:
        """Send a synchronization operation to the matching endpoint."""
        pass

    @abstractmethod
    def query(self, request: SearchQuery) -> SearchResponse:
        """
        Run a full-text query.

        Raises:
            SearchError: If the service cannot be queried
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the underlying HTTP session."""
        pass
