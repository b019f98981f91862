"""Synchronization with the external search-index service."""

from markdown_index_sync.sync.client import SearchIndexClient, classify_status

__all__ = ["SearchIndexClient", "classify_status"]
