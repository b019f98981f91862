"""
File system watcher for the markdown content tree.

Polls the content root recursively, filters by extension and ignore
patterns, and hands change events from the observer thread to the asyncio
loop that runs the indexer.
"""

import asyncio
import logging
import os
import time
from enum import Enum
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers.polling import PollingObserver
from watchdog.utils.dirsnapshot import DirectorySnapshot

from markdown_index_sync.config import SyncConfig
from markdown_index_sync.core.interfaces import IFileWatcher
from markdown_index_sync.models import MonitoringError

logger = logging.getLogger(__name__)


class WatchOp(str, Enum):
    """Kind of change reported by the watcher."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    MOVE = "move"
    RENAME = "rename"


class FileChangeEvent:
    """Represents a file system change event."""

    def __init__(self, op: WatchOp, path: str, old_path: str | None = None):
        self.op = op
        self.path = path
        self.old_path = old_path  # set for MOVE and RENAME
        self.timestamp = time.time()

    def __str__(self) -> str:
        if self.old_path:
            return f"FileChangeEvent({self.op.value}: {self.old_path} -> {self.path})"
        return f"FileChangeEvent({self.op.value}: {self.path})"

    def __repr__(self) -> str:
        return f"FileChangeEvent(op={self.op!r}, path={self.path!r}, old_path={self.old_path!r})"


class ContentFileWatcher(FileSystemEventHandler, IFileWatcher):
    """
    Polling watcher restricted to tracked content files.

    The observer thread delivers at most one event per detected change per
    polling cycle. Events and watcher errors are queued on the asyncio loop
    that called ``start``; ``closed`` fires once ``stop`` has run.
    """

    def __init__(self, config: SyncConfig, poll_interval: float | None = None):
        """
        Initialize the file watcher.

        Args:
            config: Synchronizer configuration with root and filter settings
            poll_interval: Seconds between scans (defaults to the configured interval)
        """
        super().__init__()
        self.config = config
        self.root = config.resolve_content_dir()
        self.poll_interval = poll_interval if poll_interval is not None else config.poll_interval

        self._events: asyncio.Queue[FileChangeEvent] = asyncio.Queue()
        self._errors: asyncio.Queue[MonitoringError] = asyncio.Queue()
        self._closed = asyncio.Event()

        self._observer: PollingObserver | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def closed(self) -> asyncio.Event:
        return self._closed

    @property
    def is_watching(self) -> bool:
        """Check if currently watching for file changes."""
        return self._observer is not None and self._observer.is_alive()

    def snapshot(self) -> dict[str, os.stat_result]:
        """
        List every tracked file currently under the root.

        Raises:
            MonitoringError: If the root cannot be scanned
        """
        try:
            snap = DirectorySnapshot(str(self.root), recursive=True)
        except OSError as e:
            raise MonitoringError(
                f"Cannot scan {self.root}: {e}", path=str(self.root), operation="snapshot", underlying_error=e
            ) from e

        return {
            path: snap.stat_info(path)
            for path in snap.paths
            if not snap.isdir(path) and self._should_process_file(Path(path))
        }

    def start(self) -> None:
        """
        Start polling the content root.

        Must be called from a running event loop; events are delivered to it.

        Raises:
            MonitoringError: If monitoring cannot be started
        """
        if not self.root.exists():
            raise MonitoringError(f"Directory does not exist: {self.root}", path=str(self.root), operation="start")
        if not self.root.is_dir():
            raise MonitoringError(f"Path is not a directory: {self.root}", path=str(self.root), operation="start")
        if self.is_watching:
            return

        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise MonitoringError(
                "Watcher must be started from a running event loop", operation="start", underlying_error=e
            ) from e

        try:
            self._observer = PollingObserver(timeout=self.poll_interval)
            self._observer.schedule(self, str(self.root), recursive=True)
            self._observer.start()
        except Exception as e:
            raise MonitoringError(
                f"Failed to start monitoring: {e}", path=str(self.root), operation="start", underlying_error=e
            ) from e

        logger.info("Watching %s every %.1fs", self.root, self.poll_interval)

    def stop(self) -> None:
        """Stop polling and fire the closed signal."""
        if self._observer is not None:
            if self._observer.is_alive():
                self._observer.stop()
                self._observer.join(timeout=5.0)
            self._observer = None
            logger.info("File monitoring stopped")
        self._closed.set()

    async def next_event(self) -> FileChangeEvent:
        return await self._events.get()

    async def next_error(self) -> MonitoringError:
        return await self._errors.get()

    def get_pending_events_count(self) -> int:
        """Get count of events not yet consumed."""
        return self._events.qsize()

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            super().dispatch(event)
        except Exception as e:
            self._report_error(
                MonitoringError(
                    f"Error handling {event.event_type} event: {e}",
                    path=os.fsdecode(event.src_path),
                    operation="dispatch",
                    underlying_error=e,
                )
            )

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if not event.is_directory:
            self._emit_if_tracked(WatchOp.CREATE, os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events."""
        if not event.is_directory:
            self._emit_if_tracked(WatchOp.WRITE, os.fsdecode(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file deletion events."""
        src_path = os.fsdecode(event.src_path)
        if event.is_directory:
            if Path(src_path) == self.root:
                self._report_error(MonitoringError("Content root was removed", path=src_path, operation="watch"))
            return
        self._emit_if_tracked(WatchOp.REMOVE, src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle file move and rename events."""
        if event.is_directory:
            return

        src_path = os.fsdecode(event.src_path)
        dest_path = os.fsdecode(event.dest_path)
        src_tracked = self._should_process_file(Path(src_path))
        dest_tracked = self._should_process_file(Path(dest_path))

        if src_tracked and dest_tracked:
            op = WatchOp.RENAME if Path(src_path).parent == Path(dest_path).parent else WatchOp.MOVE
            self._emit(FileChangeEvent(op, dest_path, old_path=src_path))
        elif src_tracked:
            self._emit(FileChangeEvent(WatchOp.REMOVE, src_path))
        elif dest_tracked:
            self._emit(FileChangeEvent(WatchOp.CREATE, dest_path))

    def _emit_if_tracked(self, op: WatchOp, path: str) -> None:
        if self._should_process_file(Path(path)):
            self._emit(FileChangeEvent(op, path))

    def _emit(self, change_event: FileChangeEvent) -> None:
        logger.debug("File event: %s", change_event)
        self._deliver(self._events, change_event)

    def _report_error(self, error: MonitoringError) -> None:
        logger.debug("Watcher error: %s", error)
        self._deliver(self._errors, error)

    def _deliver(self, queue: asyncio.Queue, item) -> None:
        # Called from the observer thread
        if self._loop is None or self._loop.is_closed():
            logger.warning("No event loop available, dropping %s", item)
            return
        try:
            self._loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # loop closed after the check above
            logger.warning("Event loop closed, dropping %s", item)

    def _should_process_file(self, file_path: Path) -> bool:
        """
        Check if a file should be tracked based on configuration.

        Args:
            file_path: Path to check

        Returns:
            True if file should be processed
        """
        if not self.config.is_file_supported(file_path):
            return False

        if self.config.should_ignore_file(file_path):
            return False

        return True
