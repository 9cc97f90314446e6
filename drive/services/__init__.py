"""Service layer for business logic."""

from drive.services.chunk_registry import ChunkRegistry
from drive.services.upload_coordinator import UploadCoordinator
from drive.services.namespace_engine import NamespaceEngine
from drive.services.storage_service import StorageService

__all__ = [
    "ChunkRegistry",
    "UploadCoordinator",
    "NamespaceEngine",
    "StorageService",
]
