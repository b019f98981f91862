"""Typed outcome of a downstream synchronization call."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SyncStatus(str, Enum):
    """Outcome classification for a synchronization call."""

    OK = "ok"
    NOT_FOUND = "not_found"
    TRANSIENT_FAILURE = "transient_failure"  # worth retrying later
    FATAL_FAILURE = "fatal_failure"


class SyncResult(BaseModel):
    """Result of one dispatched operation."""

    status: SyncStatus
    operation: str = Field(..., description="Operation kind: index, remove or drop")
    status_code: int | None = Field(None, description="HTTP status code, if a response was received")
    message: str = ""

    @classmethod
    def success(cls, operation: str, status_code: int | None = None) -> "SyncResult":
        return cls(status=SyncStatus.OK, operation=operation, status_code=status_code)

    @computed_field
    @property
    def ok(self) -> bool:
        return self.status == SyncStatus.OK

    def __str__(self) -> str:
        code = f" ({self.status_code})" if self.status_code is not None else ""
        detail = f": {self.message}" if self.message else ""
        return f"{self.operation} {self.status.value}{code}{detail}"

    model_config = ConfigDict(frozen=True)
