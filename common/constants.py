"""Project-wide constants (blob limits, staging TTL, upload validation)."""

import os

MIB: int = 1024 * 1024

MAX_BLOB_SIZE_BYTES: int = int(os.environ.get("DRIVE_MAX_BLOB_SIZE_BYTES", str(20 * MIB)))  # backend single-object limit

MAX_FILE_SIZE_BYTES: int = int(os.environ.get("DRIVE_MAX_FILE_SIZE_BYTES", str(2 * 1024 * MIB)))

TEMP_CHUNK_TTL_HOURS: int = 24

DEFAULT_MIME_TYPE: str = "application/octet-stream"

BLOCKED_EXTENSIONS = (".exe", ".bat", ".cmd", ".scr", ".pif", ".com")
