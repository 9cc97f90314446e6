"""End-to-end tests through the StorageService facade."""

import pytest

from drive.exceptions import NameConflictError, NotFoundError
from drive.repositories.file_repository import FileRepository


class TestDirectory:
    def test_empty_root(self, service):
        listing = service.get_directory()

        assert listing.folder_id is None
        assert listing.folders == []
        assert listing.files == []

    def test_listing_direct_children_only(self, service):
        docs = service.create_folder("docs")
        service.create_folder("nested", docs.id)
        service.upload_whole(b"hello", "hello.txt")
        service.upload_whole(b"inner", "inner.txt", folder_id=docs.id)

        root = service.list_directory(None)
        assert [folder.name for folder in root.folders] == ["docs"]
        assert [file.name for file in root.files] == ["hello.txt"]

        inner = service.get_directory(docs.id)
        assert [folder.name for folder in inner.folders] == ["nested"]
        assert [file.name for file in inner.files] == ["inner.txt"]

    def test_missing_folder(self, service):
        with pytest.raises(NotFoundError):
            service.get_directory(999)

    def test_folder_path(self, service):
        docs = service.create_folder("docs")
        reports = service.create_folder("reports", docs.id)

        assert [folder.name for folder in service.get_folder_path(reports.id)] == ["docs", "reports"]
        assert service.get_folder_path(None) == []


class TestRename:
    def test_rename_folder(self, service):
        docs = service.create_folder("docs")
        assert service.rename_folder(docs.id, "documents").name == "documents"

    def test_rename_file_conflict(self, service):
        service.upload_whole(b"1", "one.txt")
        two = service.upload_whole(b"2", "two.txt")

        with pytest.raises(NameConflictError):
            service.rename_file(two.id, "one.txt")

        assert service.rename_file(two.id, "three.txt").name == "three.txt"


class TestUploadAndDownload:
    def test_chunked_upload_round_trip(self, service):
        payload = bytes(range(256)) * 2
        parts = [payload[offset:offset + 16] for offset in range(0, len(payload), 16)]
        for index in reversed(range(len(parts))):
            service.stage_chunk("up-1", index, parts[index], "table.bin", len(payload), total_chunks=len(parts))

        file = service.merge_chunks(
            "up-1", "table.bin", len(payload), None, None, [{"chunk_index": i} for i in range(len(parts))]
        )
        downloaded = service.download_file(file.id)

        assert downloaded.data == payload
        assert downloaded.name == "table.bin"
        assert downloaded.size == len(payload)
        assert downloaded.mime_type == "application/octet-stream"

    def test_whole_upload_round_trip(self, service):
        file = service.upload_whole(b"w" * 33, "w.txt", mime_type="text/plain")

        downloaded = service.download_file(file.id)

        assert downloaded.data == b"w" * 33
        assert downloaded.mime_type == "text/plain"

    def test_download_missing_file(self, service):
        with pytest.raises(NotFoundError):
            service.download_file(999)

    def test_download_file_without_chunks(self, service):
        file = FileRepository.create_file("empty.bin", None, 0, "application/octet-stream")
        with pytest.raises(NotFoundError, match="no chunks"):
            service.download_file(file.id)

    def test_file_info_and_check(self, service):
        file = service.upload_whole(b"i" * 20, "info.bin")

        info = service.get_file_info(file.id)

        assert info.file.id == file.id
        assert [chunk.size for chunk in info.chunks] == [16, 4]
        assert service.check_file(file.id) == []

    def test_cleanup_and_sweep(self, service, clock):
        service.stage_chunk("up-1", 0, b"abc", "a.bin", 3)
        service.stage_chunk("up-2", 0, b"abc", "b.bin", 3)

        assert service.cleanup_upload("up-1").cleared_chunks == 1
        clock.advance(hours=30)
        assert service.sweep_expired() == 1


class TestNamespace:
    def test_move_copy_delete(self, service):
        src = service.create_folder("src")
        dst = service.create_folder("dst")
        file = service.upload_whole(b"payload", "p.bin", folder_id=src.id)

        assert service.copy_items([file.id], [], dst.id).copied_files == 1
        assert service.move_items([], [src.id], dst.id).moved_folders == 1
        assert [f.name for f in service.get_folder_path(src.id)] == ["dst", "src"]

        result = service.delete_items([], [dst.id])

        assert result.success
        assert service.get_directory().folders == []

    def test_single_deletes(self, service):
        folder = service.create_folder("tmp")
        file = service.upload_whole(b"x", "x.txt")

        service.delete_file(file.id)
        service.delete_folder(folder.id)

        listing = service.get_directory()
        assert listing.files == []
        assert listing.folders == []
