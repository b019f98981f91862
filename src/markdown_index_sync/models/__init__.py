"""Data models, operations and exceptions for the synchronizer."""

from markdown_index_sync.models.document import ArticleRecord, Document, compute_fingerprint, has_changed
from markdown_index_sync.models.exceptions import (
    BaseError,
    ConfigurationError,
    DocumentNotReadableError,
    InitializationError,
    MonitoringError,
    SearchError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)
from markdown_index_sync.models.operations import DropAllOperation, IndexOperation, RemoveOperation, SyncOperation
from markdown_index_sync.models.query import IndexedMetadata, SearchData, SearchHit, SearchQuery, SearchResponse, SortOrder
from markdown_index_sync.models.results import SyncResult, SyncStatus

__all__ = [
    "Document",
    "ArticleRecord",
    "compute_fingerprint",
    "has_changed",
    "IndexOperation",
    "RemoveOperation",
    "DropAllOperation",
    "SyncOperation",
    "SyncResult",
    "SyncStatus",
    "SearchQuery",
    "SearchResponse",
    "SearchData",
    "SearchHit",
    "IndexedMetadata",
    "SortOrder",
    "BaseError",
    "ConfigurationError",
    "DocumentNotReadableError",
    "InitializationError",
    "MonitoringError",
    "SearchError",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
]
