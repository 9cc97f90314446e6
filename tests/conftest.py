"""Shared pytest fixtures for all tests."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator, List

import pytest

from blobstore.base import BlobStore
from blobstore.local_store import LocalBlobStore
from common.constants import MAX_BLOB_SIZE_BYTES
from common.types import BlobDescriptor
from drive.database import init_database
from drive.exceptions import BackendFailureError, NotFoundError
from drive.services.namespace_engine import NamespaceEngine
from drive.services.storage_service import StorageService
from drive.services.upload_coordinator import UploadCoordinator


class FakeBlobStore(BlobStore):
    """
    In-memory blob store that records every call.

    Set ``fail_store`` or ``fail_deletes`` to simulate an unavailable backend.
    """

    def __init__(self, max_blob_size: int = MAX_BLOB_SIZE_BYTES):
        self.max_blob_size = max_blob_size
        self.blobs = {}
        self.labels: List[str] = []
        self.deleted: List[str] = []
        self.fail_store = False
        self.fail_deletes = False
        self._counter = 0

    def store(self, data, label):
        if self.fail_store:
            raise BackendFailureError("backend unavailable", {"label": label})

        self.labels.append(label)
        pieces = [
            data[offset:offset + self.max_blob_size]
            for offset in range(0, len(data), self.max_blob_size)
        ] or [b""]

        descriptors = []
        for piece in pieces:
            self._counter += 1
            blob_ref = f"blob-{self._counter}"
            self.blobs[blob_ref] = piece
            descriptors.append(BlobDescriptor(blob_ref=blob_ref, size=len(piece)))
        return descriptors

    def retrieve(self, blob_refs):
        parts = []
        for blob_ref in blob_refs:
            if blob_ref not in self.blobs:
                raise NotFoundError(f"Blob {blob_ref} not found", {"blob_ref": blob_ref})
            parts.append(self.blobs[blob_ref])
        return b"".join(parts)

    def delete(self, blob_ref):
        if self.fail_deletes:
            raise BackendFailureError("backend unavailable", {"blob_ref": blob_ref})
        if blob_ref not in self.blobs:
            raise NotFoundError(f"Blob {blob_ref} not found", {"blob_ref": blob_ref})
        del self.blobs[blob_ref]
        self.deleted.append(blob_ref)


class FakeClock:
    """Controllable replacement for ``utc_now``."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def test_db(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary test database for each test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        monkeypatch.setattr("drive.database.DATABASE_PATH", str(db_path))
        monkeypatch.setattr("drive.config.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    """
    Local blob store with a tiny single-object limit so small payloads split.
    """
    return LocalBlobStore(tmp_path / "blobs", max_blob_size=16)


@pytest.fixture
def fake_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def coordinator(test_db, blob_store, clock) -> UploadCoordinator:
    return UploadCoordinator(
        blob_store,
        clock=clock,
        verify_chunk_indexes=True,
        verify_declared_size=False,
        sweep_deletes_blobs=False,
    )


@pytest.fixture
def engine(test_db, blob_store) -> NamespaceEngine:
    return NamespaceEngine(blob_store, protect_shared_blobs=False)


@pytest.fixture
def service(test_db, blob_store, coordinator, engine) -> StorageService:
    return StorageService(blob_store, uploads=coordinator, namespace=engine)
