"""
Data models for the search-index service query endpoint.

The synchronizer never queries the index itself; these models pin down the
wire contract shared with the web front end and back the ``search`` command.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

SUMMARY_LENGTH = 380


class SortOrder(str, Enum):
    """Sort order accepted by the query endpoint."""

    DESC = "desc"
    ASC = "asc"


class SearchQuery(BaseModel):
    """Body of a ``POST query`` request."""

    query: str = Field(..., min_length=1, description="Full-text search query")
    page: int = Field(default=1, ge=1, description="1-based result page")
    limit: int = Field(default=10, ge=1, le=100, description="Results per page")
    order: SortOrder = Field(default=SortOrder.DESC, description="Score ordering")

    model_config = ConfigDict(use_enum_values=True)


class IndexedMetadata(BaseModel):
    """Metadata stored with every indexed document."""

    path: str
    title: str
    fingerprint: str = ""


class SearchHit(BaseModel):
    """A single matching document."""

    id: int
    text: str = ""
    document: IndexedMetadata
    score: float = 0

    @computed_field
    @property
    def summary(self) -> str:
        """Get a truncated preview of the document text."""
        if len(self.text) <= SUMMARY_LENGTH:
            return self.text
        return self.text[:SUMMARY_LENGTH]


class SearchData(BaseModel):
    """Paged result set."""

    time: float = 0
    total: int = 0
    page_count: int = Field(default=0, alias="pageCount")
    page: int = 1
    limit: int = 10
    words: list[str] | None = None
    documents: list[SearchHit] | None = None

    @property
    def has_next(self) -> bool:
        return self.page_count > self.page

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    model_config = ConfigDict(populate_by_name=True)


class SearchResponse(BaseModel):
    """Envelope returned by the query endpoint."""

    state: bool
    message: str = ""
    data: SearchData | None = None

    @property
    def hits(self) -> list[SearchHit]:
        if self.data is None or self.data.documents is None:
            return []
        return self.data.documents

    def is_success(self) -> bool:
        return self.state and self.message == "success"
