"""Persistent metadata storage."""

from markdown_index_sync.storage.sqlite_store import SQLiteMetadataStore

__all__ = ["SQLiteMetadataStore"]
