"""Blob backend adapters."""

from blobstore.base import BlobStore
from blobstore.http_store import HttpBlobStore
from blobstore.local_store import LocalBlobStore

__all__ = [
    "BlobStore",
    "HttpBlobStore",
    "LocalBlobStore",
]
