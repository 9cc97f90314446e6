"""Contract every blob backend adapter implements."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from common.types import BlobDescriptor


class BlobStore(ABC):
    """
    Opaque, size-limited object storage addressed by reference.

    Implementations raise ``drive.exceptions.BackendFailureError`` when the
    backend cannot complete a call.
    """

    @abstractmethod
    def store(self, data: bytes, label: str) -> List[BlobDescriptor]:
        """
        Store a payload.

        The backend may subdivide it; the returned descriptors are ordered and
        that order is the byte order of the payload.
        """

    @abstractmethod
    def retrieve(self, blob_refs: Sequence[str]) -> bytes:
        """
        Fetch the given blobs and concatenate them in the order given.
        """

    @abstractmethod
    def delete(self, blob_ref: str) -> None:
        """
        Remove one blob.
        """

    def close(self) -> None:
        """Release backend connections; a no-op for stores that hold none."""
