"""Configuration settings for the storage engine."""

import os

from common.constants import BLOCKED_EXTENSIONS as DEFAULT_BLOCKED_EXTENSIONS
from common.constants import TEMP_CHUNK_TTL_HOURS as DEFAULT_TEMP_CHUNK_TTL_HOURS


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_PATH = os.environ.get("DRIVE_DATABASE_PATH", "./data/drive.db")

BLOB_BACKEND = os.environ.get("DRIVE_BLOB_BACKEND", "local")

BLOB_DIR = os.environ.get("DRIVE_BLOB_DIR", "./data/blobs")

BLOB_URL = os.environ.get("DRIVE_BLOB_URL", "http://localhost:9000")

BLOB_TOKEN = os.environ.get("DRIVE_BLOB_TOKEN")

BLOB_TIMEOUT_SECONDS = float(os.environ.get("DRIVE_BLOB_TIMEOUT_SECONDS", "60"))

BLOCKED_EXTENSIONS = tuple(
    ext.strip().lower()
    for ext in os.environ.get("DRIVE_BLOCKED_EXTENSIONS", ",".join(DEFAULT_BLOCKED_EXTENSIONS)).split(",")
    if ext.strip()
)

TEMP_CHUNK_TTL_HOURS = int(os.environ.get("DRIVE_TEMP_CHUNK_TTL_HOURS", str(DEFAULT_TEMP_CHUNK_TTL_HOURS)))

SWEEP_INTERVAL_SECONDS = int(os.environ.get("DRIVE_SWEEP_INTERVAL_SECONDS", "3600"))

# Merge-time checks layered on top of the staged-count comparison
VERIFY_CHUNK_INDEXES = _env_flag("DRIVE_VERIFY_CHUNK_INDEXES", True)
VERIFY_DECLARED_SIZE = _env_flag("DRIVE_VERIFY_DECLARED_SIZE", False)

SWEEP_DELETES_BLOBS = _env_flag("DRIVE_SWEEP_DELETES_BLOBS", False)

PROTECT_SHARED_BLOBS = _env_flag("DRIVE_PROTECT_SHARED_BLOBS", False)
