"""
Monitoring package for content change detection.

This package provides the polling file watcher and the indexer that turns
its events into metadata store updates and search index pushes.
"""

from .file_watcher import ContentFileWatcher, FileChangeEvent, WatchOp
from .indexer import Indexer, IndexerState, SyncStats

__all__ = [
    "ContentFileWatcher",
    "FileChangeEvent",
    "WatchOp",
    "Indexer",
    "IndexerState",
    "SyncStats",
]
