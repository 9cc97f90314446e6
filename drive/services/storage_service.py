"""Operations exposed to the API layer, composed from the engine services."""

from datetime import datetime
from typing import List, Optional, Sequence

from common.logging_config import get_logger
from drive.exceptions import NotFoundError
from drive.repositories.file_repository import File, FileRepository
from drive.repositories.folder_repository import Folder, FolderRepository
from drive.repositories.temp_chunk_repository import TempChunk
from drive.schemas.batch import CopyResult, DeleteResult, MoveResult
from drive.schemas.uploads import CleanupResult
from drive.services.chunk_registry import ChunkRegistry
from drive.services.namespace_engine import NamespaceEngine
from drive.services.upload_coordinator import UploadCoordinator
from drive.types import DirectoryListing, DownloadedFile, FileInfo

logger = get_logger(__name__)


class StorageService:
    """
    Thin facade; errors from the underlying services propagate unchanged.
    """

    def __init__(
        self,
        blob_store,
        uploads: Optional[UploadCoordinator] = None,
        namespace: Optional[NamespaceEngine] = None,
    ):
        self.blob_store = blob_store
        self.uploads = uploads or UploadCoordinator(blob_store)
        self.namespace = namespace or NamespaceEngine(blob_store)
        self.registry = ChunkRegistry()
        self.file_repo = FileRepository()
        self.folder_repo = FolderRepository()

    def get_directory(self, folder_id: Optional[int] = None) -> DirectoryListing:
        if folder_id is not None:
            self.folder_repo.require(folder_id)
        return DirectoryListing(
            folder_id=folder_id,
            folders=self.folder_repo.list_by_parent(folder_id),
            files=self.file_repo.list_by_folder(folder_id),
        )

    list_directory = get_directory

    def get_folder_path(self, folder_id: Optional[int]) -> List[Folder]:
        return self.folder_repo.get_path(folder_id)

    def create_folder(self, name: str, parent_id: Optional[int] = None) -> Folder:
        folder = self.folder_repo.create_folder(name, parent_id)
        logger.info(f"Created folder {folder.id} ({name})")
        return folder

    def rename_folder(self, folder_id: int, name: str) -> Folder:
        return self.folder_repo.rename_folder(folder_id, name)

    def rename_file(self, file_id: int, name: str) -> File:
        return self.file_repo.rename_file(file_id, name)

    def get_file_info(self, file_id: int) -> FileInfo:
        file = self.file_repo.require(file_id)
        return FileInfo(file=file, chunks=self.registry.chunks_of(file_id))

    def check_file(self, file_id: int) -> List[str]:
        return self.registry.verify(file_id)

    def stage_chunk(
        self,
        upload_id: str,
        chunk_index: int,
        data: bytes,
        original_file_name: str,
        original_file_size: int,
        folder_id: Optional[int] = None,
        total_chunks: Optional[int] = None,
    ) -> TempChunk:
        return self.uploads.stage_chunk(
            upload_id, chunk_index, data, original_file_name, original_file_size, folder_id, total_chunks
        )

    def merge_chunks(
        self,
        upload_id: str,
        file_name: str,
        file_size: int,
        mime_type: Optional[str],
        folder_id: Optional[int],
        chunks: Sequence,
    ) -> File:
        return self.uploads.merge(upload_id, file_name, file_size, mime_type, folder_id, chunks)

    def cleanup_upload(self, upload_id: str) -> CleanupResult:
        return self.uploads.cleanup_upload(upload_id)

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        return self.uploads.sweep_expired(now)

    def upload_whole(
        self,
        data: bytes,
        file_name: str,
        folder_id: Optional[int] = None,
        mime_type: Optional[str] = None,
    ) -> File:
        return self.uploads.upload_whole(data, file_name, folder_id, mime_type)

    def move_items(self, file_ids, folder_ids, target_folder_id: Optional[int]) -> MoveResult:
        return self.namespace.move_items(file_ids, folder_ids, target_folder_id)

    def copy_items(self, file_ids, folder_ids, target_folder_id: Optional[int]) -> CopyResult:
        return self.namespace.copy_items(file_ids, folder_ids, target_folder_id)

    def delete_items(self, file_ids, folder_ids) -> DeleteResult:
        return self.namespace.delete_items(file_ids, folder_ids)

    def delete_file(self, file_id: int) -> None:
        self.namespace.delete_file(file_id)

    def delete_folder(self, folder_id: int) -> None:
        self.namespace.delete_folder(folder_id)

    def download_file(self, file_id: int) -> DownloadedFile:
        file = self.file_repo.require(file_id)
        chunks = self.registry.chunks_of(file_id)
        if not chunks:
            raise NotFoundError(f"File {file_id} has no chunks", {"file_id": file_id})

        logger.info(f"Downloading file {file_id} ({file.name}, {len(chunks)} chunks)")
        data = self.blob_store.retrieve([chunk.blob_ref for chunk in chunks])
        return DownloadedFile(data=data, name=file.name, mime_type=file.mime_type, size=file.size)
