"""Pydantic schemas for results returned to the API layer."""

from drive.schemas.batch import (
    BatchFailure,
    BatchResult,
    MoveResult,
    CopyResult,
    DeleteResult
)
from drive.schemas.uploads import CleanupResult

__all__ = [
    "BatchFailure",
    "BatchResult",
    "MoveResult",
    "CopyResult",
    "DeleteResult",
    "CleanupResult"
]
