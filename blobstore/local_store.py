"""Filesystem-backed blob store that enforces a single-object size limit."""

import uuid
from pathlib import Path
from typing import List, Sequence

from common.constants import MAX_BLOB_SIZE_BYTES
from common.logging_config import get_logger
from common.types import BlobDescriptor
from blobstore.base import BlobStore
from drive.exceptions import BackendFailureError, NotFoundError

logger = get_logger(__name__)


class LocalBlobStore(BlobStore):
    """
    Keeps each blob as one ``<ref>.blob`` file under ``root``.

    Payloads larger than ``max_blob_size`` are split into consecutive blobs,
    the same way a size-limited remote backend would.
    """

    def __init__(self, root, max_blob_size: int = MAX_BLOB_SIZE_BYTES):
        if max_blob_size <= 0:
            raise ValueError("max_blob_size must be positive")
        self.root = Path(root)
        self.max_blob_size = max_blob_size

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def get_blob_path(self, blob_ref: str) -> Path:
        """
        Get file path for a blob.

        Args:
            blob_ref: Reference returned by ``store``

        Returns:
            Path object for the blob file
        """
        return self.root / f"{blob_ref}.blob"

    def store(self, data: bytes, label: str) -> List[BlobDescriptor]:
        pieces = [
            data[offset:offset + self.max_blob_size]
            for offset in range(0, len(data), self.max_blob_size)
        ] or [b""]

        descriptors = []
        try:
            self._ensure_root()
            for piece in pieces:
                blob_ref = uuid.uuid4().hex
                self.get_blob_path(blob_ref).write_bytes(piece)
                descriptors.append(BlobDescriptor(blob_ref=blob_ref, size=len(piece)))
        except OSError as e:
            for written in descriptors:
                self.get_blob_path(written.blob_ref).unlink(missing_ok=True)
            raise BackendFailureError(f"Failed to store blob for {label}: {e}", {"label": label}) from e

        logger.debug(f"Stored {label} as {len(descriptors)} blob(s) [{len(data)} bytes]")
        return descriptors

    def retrieve(self, blob_refs: Sequence[str]) -> bytes:
        parts = []
        for blob_ref in blob_refs:
            filepath = self.get_blob_path(blob_ref)
            try:
                parts.append(filepath.read_bytes())
            except FileNotFoundError as e:
                raise NotFoundError(f"Blob {blob_ref} not found", {"blob_ref": blob_ref}) from e
            except OSError as e:
                raise BackendFailureError(f"Failed to read blob {blob_ref}: {e}", {"blob_ref": blob_ref}) from e
        return b"".join(parts)

    def delete(self, blob_ref: str) -> None:
        filepath = self.get_blob_path(blob_ref)
        try:
            filepath.unlink()
        except FileNotFoundError as e:
            raise NotFoundError(f"Blob {blob_ref} not found", {"blob_ref": blob_ref}) from e
        except OSError as e:
            raise BackendFailureError(f"Failed to delete blob {blob_ref}: {e}", {"blob_ref": blob_ref}) from e

    def exists(self, blob_ref: str) -> bool:
        """Inspection helper for operators and tests; the engine never calls it."""
        return self.get_blob_path(blob_ref).exists()

    def list_blobs(self) -> List[str]:
        """
        List all blob references in the storage directory.

        Inspection helper for operators and tests (e.g. spotting blobs left
        behind by the sweep); not part of the ``BlobStore`` contract.
        """
        if not self.root.exists():
            return []
        return [filepath.stem for filepath in self.root.glob("*.blob")]
