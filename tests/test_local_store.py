"""Unit tests for LocalBlobStore."""

import pytest

from blobstore.local_store import LocalBlobStore
from drive.exceptions import BackendFailureError, NotFoundError


@pytest.fixture
def store(tmp_path):
    return LocalBlobStore(tmp_path / "blobs", max_blob_size=16)


class TestStore:
    def test_small_payload_single_blob(self, store):
        descriptors = store.store(b"hello", "hello.txt")

        assert len(descriptors) == 1
        assert descriptors[0].size == 5
        assert store.exists(descriptors[0].blob_ref)

    def test_large_payload_split_at_limit(self, store):
        descriptors = store.store(b"x" * 40, "big.bin")

        assert [d.size for d in descriptors] == [16, 16, 8]
        assert len({d.blob_ref for d in descriptors}) == 3

    def test_empty_payload_single_empty_blob(self, store):
        descriptors = store.store(b"", "empty.txt")

        assert len(descriptors) == 1
        assert descriptors[0].size == 0

    def test_store_failure_raises_backend_error(self, tmp_path):
        not_a_dir = tmp_path / "occupied"
        not_a_dir.write_text("file in the way")
        store = LocalBlobStore(not_a_dir)

        with pytest.raises(BackendFailureError):
            store.store(b"data", "data.bin")

    def test_invalid_limit(self, tmp_path):
        with pytest.raises(ValueError):
            LocalBlobStore(tmp_path, max_blob_size=0)


class TestRetrieve:
    def test_retrieve_concatenates_in_given_order(self, store):
        first = store.store(b"first-", "a")[0].blob_ref
        second = store.store(b"second", "b")[0].blob_ref

        assert store.retrieve([first, second]) == b"first-second"
        assert store.retrieve([second, first]) == b"secondfirst-"

    def test_retrieve_split_payload(self, store):
        payload = bytes(range(50))
        descriptors = store.store(payload, "range.bin")

        assert store.retrieve([d.blob_ref for d in descriptors]) == payload

    def test_retrieve_missing_blob(self, store):
        with pytest.raises(NotFoundError):
            store.retrieve(["does-not-exist"])


class TestDelete:
    def test_delete_removes_blob(self, store):
        blob_ref = store.store(b"bye", "bye.txt")[0].blob_ref

        store.delete(blob_ref)

        assert not store.exists(blob_ref)
        assert store.list_blobs() == []

    def test_delete_missing_blob(self, store):
        with pytest.raises(NotFoundError):
            store.delete("does-not-exist")

    def test_list_blobs(self, store):
        assert store.list_blobs() == []
        refs = {d.blob_ref for d in store.store(b"y" * 20, "y.bin")}
        assert set(store.list_blobs()) == refs
