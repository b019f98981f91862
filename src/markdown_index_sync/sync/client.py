"""
HTTP adapter for the external search-index service.

Every call is a single request with no retry; the outcome is reported as a
``SyncResult`` and left to the caller to log. Nothing is raised for
index/remove/drop so an unreachable backend never stops local tracking.
"""

import logging
from typing import Any

import requests
from pydantic import ValidationError

from markdown_index_sync.config import SyncConfig
from markdown_index_sync.core.interfaces import ISyncClient
from markdown_index_sync.models import (
    DropAllOperation,
    IndexOperation,
    RemoveOperation,
    SearchError,
    SearchQuery,
    SearchResponse,
    SyncOperation,
    SyncResult,
    SyncStatus,
)

logger = logging.getLogger(__name__)

INDEX_ENDPOINT = "index"
REMOVE_ENDPOINT = "index/remove"
DROP_ENDPOINT = "db/drop"
QUERY_ENDPOINT = "query"

TRANSIENT_STATUS_CODES = frozenset({408, 429})


def classify_status(status_code: int) -> SyncStatus:
    """Map an HTTP status code to a sync outcome."""
    if status_code == 200:
        return SyncStatus.OK
    if status_code == 404:
        return SyncStatus.NOT_FOUND
    if status_code in TRANSIENT_STATUS_CODES or status_code >= 500:
        return SyncStatus.TRANSIENT_FAILURE
    return SyncStatus.FATAL_FAILURE


class SearchIndexClient(ISyncClient):
    """Stateless client for the index, remove, drop and query endpoints."""

    def __init__(self, config: SyncConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()
        self.timeout = config.request_timeout_seconds
        self.params = {"database": config.search_database}

    def push_index(self, record_id: int, text: str, path: str, title: str, fingerprint: str) -> SyncResult:
        operation = IndexOperation(record_id=record_id, text=text, path=path, title=title, fingerprint=fingerprint)
        return self.dispatch(operation)

    def push_remove(self, record_id: int) -> SyncResult:
        return self.dispatch(RemoveOperation(record_id=record_id))

    def drop_database(self) -> SyncResult:
        return self.dispatch(DropAllOperation())

    def dispatch(self, operation: SyncOperation) -> SyncResult:
        """Send one operation to its endpoint and classify the outcome."""
        if self.config.dry_run:
            logger.debug("Dry run, skipping %s", operation.kind)
            return SyncResult.success(operation.kind)

        if isinstance(operation, IndexOperation):
            logger.debug("Indexing doc %d at %s", operation.record_id, operation.path)
            return self._send("POST", INDEX_ENDPOINT, operation.kind, operation.to_payload())
        if isinstance(operation, RemoveOperation):
            logger.debug("Removing doc %d", operation.record_id)
            return self._send("POST", REMOVE_ENDPOINT, operation.kind, operation.to_payload())
        if isinstance(operation, DropAllOperation):
            logger.info("Dropping index database %s", self.config.search_database)
            return self._send("GET", DROP_ENDPOINT, operation.kind)

        raise TypeError(f"Unsupported operation: {operation!r}")

    def _send(self, method: str, endpoint: str, kind: str, payload: dict[str, Any] | None = None) -> SyncResult:
        url = self.config.endpoint(endpoint)
        try:
            response = self.session.request(method, url, params=self.params, json=payload, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.debug("%s %s failed: %s", method, url, e)
            return SyncResult(status=SyncStatus.TRANSIENT_FAILURE, operation=kind, message=str(e))
        except requests.RequestException as e:
            logger.debug("%s %s failed: %s", method, url, e)
            return SyncResult(status=SyncStatus.FATAL_FAILURE, operation=kind, message=str(e))

        status = classify_status(response.status_code)
        message = "" if status == SyncStatus.OK else response.text[:200]
        return SyncResult(status=status, operation=kind, status_code=response.status_code, message=message)

    def query(self, request: SearchQuery) -> SearchResponse:
        """
        Run a full-text query against the service.

        Raises:
            SearchError: On transport failure, non-200 status or malformed body
        """
        url = self.config.endpoint(QUERY_ENDPOINT)
        try:
            response = self.session.post(
                url, params=self.params, json=request.model_dump(mode="json"), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise SearchError(f"Query request failed: {e}", query=request.query, underlying_error=e) from e

        if response.status_code != 200:
            raise SearchError(
                f"Query returned status {response.status_code}",
                query=request.query,
                status_code=response.status_code,
            )

        try:
            return SearchResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SearchError(f"Malformed query response: {e}", query=request.query, underlying_error=e) from e

    def close(self) -> None:
        self.session.close()
