"""
Synchronization operations sent to the search-index service.

Operations are ephemeral: the indexer builds one per handled change and
dispatches it immediately. Nothing is queued or persisted.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from markdown_index_sync.models.document import Document


class IndexOperation(BaseModel):
    """Submit full document content plus metadata for indexing or replacement."""

    kind: Literal["index"] = "index"
    record_id: int = Field(..., ge=1)
    text: str
    path: str = Field(..., description="Relative path without extension")
    title: str
    fingerprint: str

    @classmethod
    def for_document(cls, record_id: int, document: Document) -> "IndexOperation":
        return cls(
            record_id=record_id,
            text=document.content,
            path=document.relative_path,
            title=document.title,
            fingerprint=document.fingerprint,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.record_id,
            "text": self.text,
            "document": {"path": self.path, "title": self.title, "fingerprint": self.fingerprint},
        }

    model_config = ConfigDict(frozen=True)


class RemoveOperation(BaseModel):
    """Remove a previously indexed document by surrogate id."""

    kind: Literal["remove"] = "remove"
    record_id: int = Field(..., ge=1)

    def to_payload(self) -> dict[str, Any]:
        return {"id": self.record_id}

    model_config = ConfigDict(frozen=True)


class DropAllOperation(BaseModel):
    """Discard the whole downstream index namespace."""

    kind: Literal["drop"] = "drop"

    model_config = ConfigDict(frozen=True)


SyncOperation = IndexOperation | RemoveOperation | DropAllOperation
