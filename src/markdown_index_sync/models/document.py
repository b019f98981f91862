"""
Data models for tracked content files.

A ``Document`` is what the synchronizer observes on disk right now; an
``ArticleRecord`` is what it last pushed downstream and persisted in the
metadata store. Change detection compares the two.
"""

import hashlib
import os
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from markdown_index_sync.models.exceptions import DocumentNotReadableError


class Fingerprinted(Protocol):
    """Anything carrying a content fingerprint and a modification time."""

    fingerprint: str
    modified_at: datetime


def compute_fingerprint(data: bytes) -> str:
    """Compute the MD5 hex digest used as content fingerprint."""
    return hashlib.md5(data).hexdigest()


def has_changed(a: Fingerprinted, b: Fingerprinted) -> bool:
    """
    Return True when two observations of a file differ.

    Modification times are compared at second precision, so sub-second
    changes reported by some filesystems are invisible here.
    """
    return a.fingerprint != b.fingerprint or int(a.modified_at.timestamp()) != int(b.modified_at.timestamp())


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Document(BaseModel):
    """
    A content file as observed on disk.

    Documents are transient: they are built by ``observe`` whenever the
    indexer needs the current state of a path and are never persisted as-is.
    """

    path: str = Field(..., min_length=1, description="Absolute path to file")
    root: str = Field(..., min_length=1, description="Watched content root")
    fingerprint: str = Field(..., min_length=32, max_length=32, description="MD5 content hash")
    modified_at: datetime = Field(..., description="File last modification timestamp")
    content: str = Field(default="", exclude=True, repr=False, description="Decoded file content")

    @classmethod
    def observe(cls, path: str | Path, root: str | Path) -> "Document":
        """
        Read a file and build a Document from its bytes and stat info.

        Raises:
            DocumentNotReadableError: If the file cannot be opened or stat'd
        """
        try:
            with open(path, "rb") as handle:
                stat = os.fstat(handle.fileno())
                data = handle.read()
        except OSError as e:
            raise DocumentNotReadableError(
                f"Cannot read {path}: {e}", file_path=str(path), underlying_error=e
            ) from e

        return cls(
            path=str(Path(path).absolute()),
            root=str(Path(root).absolute()),
            fingerprint=compute_fingerprint(data),
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            content=data.decode("utf-8", errors="replace"),
        )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v):
        """Ensure file path is absolute."""
        if not Path(v).is_absolute():
            raise ValueError("path must be an absolute path")
        return v

    @field_validator('modified_at')
    @classmethod
    def validate_modified_at(cls, v):
        return _as_utc(v)

    @computed_field
    @property
    def relative_path(self) -> str:
        """Path below the content root without extension, used as external identifier."""
        try:
            relative = Path(self.path).relative_to(self.root)
        except ValueError:
            relative = Path(Path(self.path).name)
        return str(PurePosixPath(*relative.with_suffix("").parts))

    @computed_field
    @property
    def title(self) -> str:
        """Get the file name without extension."""
        return Path(self.path).stem

    def is_changed_from(self, other: Fingerprinted) -> bool:
        """Check whether this observation differs from another one."""
        return has_changed(self, other)

    def __str__(self) -> str:
        return f"Document({self.relative_path}, {self.fingerprint[:8]})"

    model_config = ConfigDict(validate_assignment=True)


class ArticleRecord(BaseModel):
    """
    A row of the metadata store.

    Mirrors the last Document that was written locally; ``id`` is the
    surrogate key the downstream search service knows the document by.
    """

    id: int = Field(..., ge=1, description="Surrogate key assigned by the store")
    path: str = Field(..., min_length=1, description="Tracked file path")
    fingerprint: str = Field(..., description="Content fingerprint at last sync")
    modified_at: datetime = Field(..., description="Modification time at last sync")

    @classmethod
    def from_document(cls, document: Document, id: int) -> "ArticleRecord":
        """Build a record for the given surrogate id from an observed document."""
        return cls(id=id, path=document.path, fingerprint=document.fingerprint, modified_at=document.modified_at)

    @field_validator('modified_at')
    @classmethod
    def validate_modified_at(cls, v):
        return _as_utc(v)

    def __str__(self) -> str:
        return f"id {self.id} path {self.path}"

    model_config = ConfigDict(validate_assignment=True)
