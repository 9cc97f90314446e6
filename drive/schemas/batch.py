"""Pydantic schemas for batch namespace operations."""

from typing import Any, List

from pydantic import BaseModel, Field

from drive.exceptions import ErrorKind


class BatchFailure(BaseModel):
    """One item that could not be processed."""
    item_type: str
    item_id: Any
    kind: ErrorKind
    message: str


class BatchResult(BaseModel):
    """Aggregate outcome of a batch; ``success`` is true only when nothing failed."""
    success: bool = True
    errors: List[str] = Field(default_factory=list)
    failures: List[BatchFailure] = Field(default_factory=list)

    def record_failure(self, item_type: str, item_id: Any, kind: ErrorKind, message: str) -> None:
        self.errors.append(f"{item_type} {item_id}: {message}")
        self.failures.append(BatchFailure(item_type=item_type, item_id=item_id, kind=kind, message=message))
        self.success = False


class MoveResult(BatchResult):
    """Response model for batch move."""
    moved_files: int = 0
    moved_folders: int = 0


class CopyResult(BatchResult):
    """Response model for batch copy."""
    copied_files: int = 0
    copied_folders: int = 0


class DeleteResult(BatchResult):
    """Response model for batch delete."""
    deleted_files: int = 0
    deleted_folders: int = 0
