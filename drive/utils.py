"""Utility helper functions for the storage engine."""

from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, List, Optional

from common.constants import MAX_FILE_SIZE_BYTES
from common.logging_config import get_logger
from drive.config import BLOCKED_EXTENSIONS
from drive.exceptions import InvalidArgumentError

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """
    Render a timestamp as fixed-width UTC ISO text.

    Stored timestamps are compared as strings in SQL, so microseconds are
    always emitted and naive values are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def coerce_id_list(value: Any, label: str) -> List[Any]:
    """
    Normalize a batch id argument to a list.

    Anything that is not a list or tuple is treated as an empty selection.
    """
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is not None:
        logger.warning(f"Ignoring non-list {label}: {value!r}")
    return []


def coerce_id(value: Any, label: str) -> int:
    """
    Normalize one folder or file id to an int.

    Ids arriving from JSON may be strings; sqlite matches ``"1"`` against
    row 1 while Python comparisons do not, so every id is converted before use.

    Raises:
        InvalidArgumentError: value is not an integer id
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid {label}: {value!r}", {label: value})
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"Invalid {label}: {value!r}", {label: value}) from e


def coerce_optional_id(value: Any, label: str) -> Optional[int]:
    """Like ``coerce_id``; None stays None (the root)."""
    if value is None:
        return None
    return coerce_id(value, label)


def chunk_label(original_file_name: str, chunk_index: int, total_chunks: Optional[int]) -> str:
    """
    Name under which a staged chunk is handed to the blob backend.

    Multi-part uploads get a ``.partNNN`` suffix; a single-part upload keeps
    the original name.
    """
    if total_chunks is not None and total_chunks > 1:
        return f"{original_file_name}.part{chunk_index:03d}"
    return original_file_name


def get_file_extension(file_name: str) -> str:
    return PurePosixPath(file_name).suffix


def validate_upload(
    file_name: str,
    file_size: int,
    max_size: int = MAX_FILE_SIZE_BYTES,
    blocked_extensions=BLOCKED_EXTENSIONS,
) -> None:
    """
    Validate an incoming upload before any bytes reach the backend.

    Raises:
        InvalidArgumentError: blank name, oversize file or blocked extension
    """
    if not file_name or not file_name.strip():
        raise InvalidArgumentError("Invalid file name", {"file_name": file_name})

    if file_size < 0:
        raise InvalidArgumentError("File size cannot be negative", {"file_name": file_name, "file_size": file_size})

    if file_size > max_size:
        raise InvalidArgumentError(
            f"File size {file_size} exceeds maximum limit ({max_size} bytes)",
            {"file_name": file_name, "file_size": file_size, "max_size": max_size},
        )

    extension = get_file_extension(file_name).lower()
    if extension and extension in blocked_extensions:
        raise InvalidArgumentError(
            "File type not allowed for security reasons",
            {"file_name": file_name, "extension": extension},
        )
