"""Shared data type definitions."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BlobDescriptor:
    """
    Reference to one object held by the blob backend.
    """
    blob_ref: str
    size: int
