"""Custom exception classes for the storage engine."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NAME_CONFLICT = "name_conflict"
    CYCLE_REJECTED = "cycle_rejected"
    COUNT_MISMATCH = "count_mismatch"
    BACKEND_FAILURE = "backend_failure"
    INVALID_ARGUMENT = "invalid_argument"


class DriveException(Exception):
    """
    Base exception class for all engine errors.

    Every error carries a fixed ``kind`` so callers can branch on it, plus a
    free-form ``context`` mapping with the identifiers involved.
    """
    kind: ErrorKind = ErrorKind.BACKEND_FAILURE

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
        }


class NotFoundError(DriveException):
    """
    Raised when a folder, file or upload does not exist.
    """
    kind = ErrorKind.NOT_FOUND


class NoStagedChunksError(NotFoundError):
    """
    Raised when a merge is requested for an upload with no staged chunks.
    """


class NameConflictError(DriveException):
    """
    Raised when a sibling with the same name already exists in the target folder.
    """
    kind = ErrorKind.NAME_CONFLICT


class CycleRejectedError(DriveException):
    """
    Raised when a folder move would make the folder its own ancestor.
    """
    kind = ErrorKind.CYCLE_REJECTED


class CountMismatchError(DriveException):
    """
    Raised when staged chunks disagree with what the merge request declares.
    """
    kind = ErrorKind.COUNT_MISMATCH


class BackendFailureError(DriveException):
    """
    Raised when the blob backend or the metadata database fails.
    """
    kind = ErrorKind.BACKEND_FAILURE


class InvalidArgumentError(DriveException):
    """
    Raised for malformed input such as a blank file name or a blocked extension.
    """
    kind = ErrorKind.INVALID_ARGUMENT
