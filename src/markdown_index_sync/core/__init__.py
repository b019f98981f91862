"""Core contracts shared by the synchronizer components."""

from markdown_index_sync.core.interfaces import IFileWatcher, IMetadataStore, ISyncClient

__all__ = [
    "IMetadataStore",
    "IFileWatcher",
    "ISyncClient",
]
