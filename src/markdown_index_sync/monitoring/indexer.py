"""
Indexer orchestrating reconciliation and live synchronization.

Owns the metadata store, the file watcher and the search service client.
On start it repairs drift between disk and the store once, then turns
watcher events into store mutations followed by downstream pushes until the
stop event is set.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from markdown_index_sync.config import SyncConfig
from markdown_index_sync.core.interfaces import IFileWatcher, IMetadataStore, ISyncClient
from markdown_index_sync.models import (
    ArticleRecord,
    Document,
    DocumentNotReadableError,
    DropAllOperation,
    IndexOperation,
    InitializationError,
    RemoveOperation,
    StoreError,
    SyncOperation,
    SyncResult,
    SyncStatus,
)
from markdown_index_sync.monitoring.file_watcher import ContentFileWatcher, FileChangeEvent, WatchOp
from markdown_index_sync.storage import SQLiteMetadataStore
from markdown_index_sync.sync import SearchIndexClient

logger = logging.getLogger(__name__)

INSERTED = "inserted"
UPDATED = "updated"
REINDEXED = "reindexed"
UNCHANGED = "unchanged"
REMOVED = "removed"
MISSING = "missing"
SKIPPED = "skipped"
FAILED = "failed"

MAX_FAILED_PATHS = 100


class IndexerState(str, Enum):
    """Lifecycle of the indexer."""

    INITIALIZING = "initializing"
    RECONCILING = "reconciling"
    WATCHING = "watching"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


@dataclass(slots=True)
class SyncStats:
    processed: int = 0
    inserted: int = 0
    updated: int = 0
    reindexed: int = 0
    unchanged: int = 0
    removed: int = 0
    skipped: int = 0
    failed: int = 0
    push_failures: int = 0
    failed_paths: deque[str] = field(default_factory=lambda: deque(maxlen=MAX_FAILED_PATHS))

    def increment(self, status: str, path: str) -> None:
        self.processed += 1
        if status == INSERTED:
            self.inserted += 1
        elif status == UPDATED:
            self.updated += 1
        elif status == REINDEXED:
            self.reindexed += 1
        elif status == UNCHANGED:
            self.unchanged += 1
        elif status == REMOVED:
            self.removed += 1
        elif status in (SKIPPED, MISSING):
            self.skipped += 1
        else:
            self.failed += 1
            self.failed_paths.append(path)


class Indexer:
    """
    Keeps the search index in step with the content directory.

    Every handled change mutates the store first and pushes downstream
    second. A failed push is logged and never rolls back the local change;
    the next startup reconciliation is what repairs such divergence.
    """

    def __init__(
        self,
        config: SyncConfig,
        store: IMetadataStore | None = None,
        watcher: IFileWatcher | None = None,
        client: ISyncClient | None = None,
    ):
        """
        Initialize the indexer.

        Args:
            config: Synchronizer configuration
            store: Optional metadata store (opened from ``config.db_path`` if not provided)
            watcher: Optional file watcher (will create if not provided)
            client: Optional search service client (will create if not provided)

        Raises:
            InitializationError: If the content root is missing or the store cannot be opened
        """
        self.config = config
        self.state = IndexerState.INITIALIZING
        self.root = config.resolve_content_dir()

        if not self.root.is_dir():
            raise InitializationError(
                f"Markdown dir {self.root} does not exist",
                component="indexer",
                initialization_stage="content_root",
            )

        self.store = store or SQLiteMetadataStore(config.resolve_db_path())
        self.watcher = watcher or ContentFileWatcher(config)
        self.client = client or SearchIndexClient(config)
        self.stats = SyncStats()

    async def start(self, stop_event: asyncio.Event) -> None:
        """
        Reconcile, then handle changes until ``stop_event`` is set, then release resources.

        The watcher starts before reconciliation so that changes made while
        it runs are queued and handled once the event loop starts.
        """
        try:
            self.watcher.start()
            await self.reconcile()
            await self.run(stop_event)
        finally:
            self.shutdown()

    async def reconcile(self) -> SyncStats:
        """
        Compare the current tree against the store and repair drift.

        New paths are inserted and pushed, changed paths are updated and
        pushed. With ``force_reindex`` the downstream index is dropped first
        and every document is pushed again.

        Returns:
            Counters for this pass
        """
        self.state = IndexerState.RECONCILING
        pass_stats = SyncStats()
        force = self.config.force_reindex

        if force:
            logger.info("Forced reindex requested, dropping index database %s", self.config.search_database)
            await self._push(DropAllOperation(), str(self.root))

        snapshot = self.watcher.snapshot()
        for path in sorted(snapshot):
            status = await self._apply(self._reconcile_path, path, force)
            self._record(status, path, pass_stats)

        if self.config.prune_orphans:
            for record in self._orphans(snapshot):
                logger.info("Pruning orphaned record %s", record)
                status = await self._apply(self.remove_article, record.path)
                self._record(status, record.path, pass_stats)

        logger.info(
            "Startup run processed %d files: %d inserted, %d updated, %d reindexed, %d removed, %d failed",
            len(snapshot),
            pass_stats.inserted,
            pass_stats.updated,
            pass_stats.reindexed,
            pass_stats.removed,
            pass_stats.failed,
        )
        return pass_stats

    async def run(self, stop_event: asyncio.Event) -> None:
        """Consume watcher events serially until stopped or the watcher closes."""
        self.state = IndexerState.WATCHING
        while not stop_event.is_set():
            next_event = asyncio.create_task(self.watcher.next_event())
            next_error = asyncio.create_task(self.watcher.next_error())
            stopped = asyncio.create_task(stop_event.wait())
            closed = asyncio.create_task(self.watcher.closed.wait())

            done, pending = await asyncio.wait(
                {next_event, next_error, stopped, closed}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

            if next_error in done:
                logger.error("Watcher error: %s", next_error.result())
            if next_event in done:
                await self.handle_event(next_event.result())
            if stopped in done or closed in done:
                break

        logger.info("Indexer event loop finished")

    def shutdown(self) -> None:
        """Stop the watcher and release the store and client."""
        if self.state == IndexerState.STOPPED:
            return

        self.state = IndexerState.SHUTTING_DOWN
        logger.info("Shutting down indexer")
        self.watcher.stop()
        self.store.close()
        self.client.close()
        self.state = IndexerState.STOPPED

    async def reset(self) -> SyncResult:
        """
        Drop the downstream index, then clear every local record.

        Local records are kept when the downstream drop fails so the store
        never claims less than the index holds.
        """
        result = await self._push(DropAllOperation(), str(self.root))
        if result.ok:
            removed = self.store.drop_all()
            logger.info("Reset complete, %d records cleared", removed)
        else:
            logger.error("Index drop failed, local records kept")
        return result

    async def handle_event(self, event: FileChangeEvent) -> None:
        """Translate one watcher event into store mutations and pushes."""
        logger.debug("Handling %s", event)

        if event.op in (WatchOp.MOVE, WatchOp.RENAME):
            await self.move_article(event.old_path, event.path)
            return

        handlers: dict[WatchOp, Callable[[str], Awaitable[str]]] = {
            WatchOp.CREATE: self.add_article,
            WatchOp.WRITE: self.update_article,
            WatchOp.REMOVE: self.remove_article,
        }
        handler = handlers.get(event.op)
        if handler is None:
            logger.warning("Ignoring unsupported event %s", event)
            return

        status = await self._apply(handler, event.path)
        self._record(status, event.path)

    async def add_article(self, path: str) -> str:
        """Start tracking a path; an already tracked path is refreshed instead."""
        existing = self.store.find(path)
        if existing is not None:
            return await self._refresh(existing, path, force=False)

        document = self._observe(path)
        if document is None:
            return SKIPPED

        record = self.store.insert(document)
        logger.info("Added %s", record)
        await self._push(IndexOperation.for_document(record.id, document), path)
        return INSERTED

    async def update_article(self, path: str) -> str:
        """Re-index a path if its content changed; untracked paths are added."""
        existing = self.store.find(path)
        if existing is None:
            return await self.add_article(path)
        return await self._refresh(existing, path, force=False)

    async def remove_article(self, path: str) -> str:
        """Stop tracking a path and remove it from the index."""
        existing = self.store.find(path)
        if existing is None:
            logger.debug("Remove for untracked path %s", path)
            return MISSING

        self.store.delete(path)
        logger.info("Removed %s", existing)
        await self._push(RemoveOperation(record_id=existing.id), path)
        return REMOVED

    async def move_article(self, old_path: str, path: str) -> None:
        """Handle a move or rename as a removal of the old path and an addition of the new one."""
        logger.debug("Move: %s -> %s", old_path, path)
        status = await self._apply(self.remove_article, old_path)
        self._record(status, old_path)
        status = await self._apply(self.add_article, path)
        self._record(status, path)

    async def _reconcile_path(self, path: str, force: bool) -> str:
        existing = self.store.find(path)
        if existing is None:
            return await self.add_article(path)
        return await self._refresh(existing, path, force=force)

    async def _refresh(self, existing: ArticleRecord, path: str, force: bool) -> str:
        document = self._observe(path)
        if document is None:
            return SKIPPED

        if document.is_changed_from(existing):
            self.store.update(ArticleRecord.from_document(document, id=existing.id))
            logger.info("Updated %s", existing)
            status = UPDATED
        elif force:
            status = REINDEXED
        else:
            return UNCHANGED

        await self._push(IndexOperation.for_document(existing.id, document), path)
        return status

    def _orphans(self, snapshot: dict) -> list[ArticleRecord]:
        try:
            return [record for record in self.store.records() if record.path not in snapshot]
        except StoreError as e:
            logger.error("Cannot list tracked records, skipping orphan pruning: %s", e)
            return []

    def _observe(self, path: str) -> Document | None:
        try:
            return Document.observe(path, self.root)
        except DocumentNotReadableError as e:
            logger.warning("Skipping unreadable file %s: %s", path, e)
            return None

    async def _push(self, operation: SyncOperation, path: str) -> SyncResult:
        result = await asyncio.to_thread(self.client.dispatch, operation)
        if not result.ok:
            self.stats.push_failures += 1
            if result.status == SyncStatus.FATAL_FAILURE:
                logger.error("Push failed for %s: %s", path, result)
            else:
                logger.warning("Push failed for %s: %s", path, result)
        return result

    async def _apply(self, handler: Callable[..., Awaitable[str]], path: str, *args) -> str:
        try:
            return await handler(path, *args)
        except StoreError as e:
            logger.error("Store error for %s, skipping: %s", path, e)
        except Exception:
            logger.exception("Unexpected error handling %s", path)
        return FAILED

    def _record(self, status: str, path: str, pass_stats: SyncStats | None = None) -> None:
        self.stats.increment(status, path)
        if pass_stats is not None:
            pass_stats.increment(status, path)
