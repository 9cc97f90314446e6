"""Folder/file hierarchy operations: move, copy, delete."""

from collections import deque
from typing import Any, List, Optional

from common.logging_config import get_logger
from drive.config import PROTECT_SHARED_BLOBS
from drive.database import get_db_connection
from drive.exceptions import CycleRejectedError, DriveException, ErrorKind, NotFoundError
from drive.repositories.chunk_repository import Chunk, ChunkRepository
from drive.repositories.file_repository import File, FileRepository
from drive.repositories.folder_repository import Folder, FolderRepository
from drive.schemas.batch import BatchResult, CopyResult, DeleteResult, MoveResult
from drive.services.blob_cleanup import delete_blobs
from drive.utils import coerce_id, coerce_id_list, coerce_optional_id

logger = get_logger(__name__)


def _root_label(folder_id: Optional[int]) -> str:
    return "root" if folder_id is None else str(folder_id)


class NamespaceEngine:
    """
    Batch operations over the folder tree.

    Items are processed one at a time in input order, files before folders.
    A failing item is recorded in the result and never stops the batch.
    Concurrent batches touching the same subtree are not coordinated.
    """

    def __init__(self, blob_store, protect_shared_blobs: bool = PROTECT_SHARED_BLOBS):
        self.blob_store = blob_store
        self.protect_shared_blobs = protect_shared_blobs
        self.file_repo = FileRepository()
        self.folder_repo = FolderRepository()
        self.chunk_repo = ChunkRepository()

    @staticmethod
    def _record_failure(result: BatchResult, item_type: str, item_id: Any, error: Exception) -> None:
        if isinstance(error, DriveException):
            kind, message = error.kind, error.message
        else:
            kind, message = ErrorKind.BACKEND_FAILURE, str(error)
        result.record_failure(item_type, item_id, kind, message)
        logger.error(f"{item_type.capitalize()} {item_id} failed: {message}")

    def is_safe_move(self, folder_id: int, target_folder_id: Optional[int]) -> bool:
        """
        Whether ``folder_id`` can be reparented under ``target_folder_id``.

        Walks from the target up to the root; meeting ``folder_id`` on the
        way means the target is the folder itself or one of its descendants.
        """
        folder_id = coerce_id(folder_id, "folder_id")
        target_folder_id = coerce_optional_id(target_folder_id, "target_folder_id")
        if target_folder_id is None:
            return True
        if folder_id == target_folder_id:
            return False

        seen = set()
        current = target_folder_id
        with get_db_connection() as conn:
            while current is not None:
                if current == folder_id:
                    return False
                if current in seen:
                    logger.warning(f"Folder ancestry loop detected at {current}")
                    return False
                seen.add(current)
                folder = self.folder_repo.get_by_id(current, conn=conn)
                current = folder.parent_id if folder else None
        return True

    def move_items(self, file_ids, folder_ids, target_folder_id: Optional[int]) -> MoveResult:
        file_ids = coerce_id_list(file_ids, "file_ids")
        folder_ids = coerce_id_list(folder_ids, "folder_ids")
        logger.info(
            f"Batch move: {len(file_ids)} files, {len(folder_ids)} folders -> {_root_label(target_folder_id)}"
        )

        result = MoveResult()

        for file_id in file_ids:
            try:
                self.file_repo.update_folder(
                    coerce_id(file_id, "file_id"), coerce_optional_id(target_folder_id, "target_folder_id")
                )
                result.moved_files += 1
                logger.info(f"Moved file {file_id} to {_root_label(target_folder_id)}")
            except Exception as e:
                self._record_failure(result, "file", file_id, e)

        for folder_id in folder_ids:
            try:
                if not self.is_safe_move(folder_id, target_folder_id):
                    raise CycleRejectedError(
                        "cycle: cannot move a folder into itself or one of its subfolders",
                        {"folder_id": folder_id, "target_folder_id": target_folder_id},
                    )
                self.folder_repo.update_parent(
                    coerce_id(folder_id, "folder_id"), coerce_optional_id(target_folder_id, "target_folder_id")
                )
                result.moved_folders += 1
                logger.info(f"Moved folder {folder_id} to {_root_label(target_folder_id)}")
            except Exception as e:
                self._record_failure(result, "folder", folder_id, e)

        result.success = not result.errors
        return result

    def copy_file(self, file_id: int, target_folder_id: Optional[int]) -> File:
        """
        Copy file metadata; the new chunk rows share the source's blobs.
        """
        file_id = coerce_id(file_id, "file_id")
        target_folder_id = coerce_optional_id(target_folder_id, "target_folder_id")
        with get_db_connection() as conn:
            try:
                source = self.file_repo.require(file_id, conn=conn)
                chunks = self.chunk_repo.get_chunks_by_file(file_id, conn=conn)
                if not chunks:
                    raise NotFoundError(f"File {file_id} has no chunks", {"file_id": file_id})

                copy = self.file_repo.create_file(
                    source.name, target_folder_id, source.size, source.mime_type, conn=conn
                )
                self.chunk_repo.create_chunks(
                    [
                        Chunk(
                            id=None,
                            file_id=copy.id,
                            chunk_index=chunk.chunk_index,
                            blob_ref=chunk.blob_ref,
                            size=chunk.size,
                        )
                        for chunk in chunks
                    ],
                    conn=conn,
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return copy

    def copy_folder(self, folder_id: int, target_folder_id: Optional[int]) -> Folder:
        """
        Copy a folder tree under ``target_folder_id``.

        Each folder copy is created before anything is copied into it. Folders
        created by this copy are skipped when met again, which keeps a copy
        into the source's own subtree finite. A failure leaves the part
        already copied in place.
        """
        folder_id = coerce_id(folder_id, "folder_id")
        target_folder_id = coerce_optional_id(target_folder_id, "target_folder_id")
        source = self.folder_repo.require(folder_id)
        root_copy = self.folder_repo.create_folder(source.name, target_folder_id)
        created = {root_copy.id}

        pending = deque([(folder_id, root_copy.id)])
        while pending:
            source_id, copy_id = pending.popleft()

            for file in self.file_repo.list_by_folder(source_id):
                self.copy_file(file.id, copy_id)

            for subfolder in self.folder_repo.list_by_parent(source_id):
                if subfolder.id in created:
                    continue
                subfolder_copy = self.folder_repo.create_folder(subfolder.name, copy_id)
                created.add(subfolder_copy.id)
                pending.append((subfolder.id, subfolder_copy.id))

        return root_copy

    def copy_items(self, file_ids, folder_ids, target_folder_id: Optional[int]) -> CopyResult:
        file_ids = coerce_id_list(file_ids, "file_ids")
        folder_ids = coerce_id_list(folder_ids, "folder_ids")
        logger.info(
            f"Batch copy: {len(file_ids)} files, {len(folder_ids)} folders -> {_root_label(target_folder_id)}"
        )

        result = CopyResult()

        for file_id in file_ids:
            try:
                copy = self.copy_file(file_id, target_folder_id)
                result.copied_files += 1
                logger.info(f"Copied file {file_id} as {copy.id}")
            except Exception as e:
                self._record_failure(result, "file", file_id, e)

        for folder_id in folder_ids:
            try:
                copy = self.copy_folder(folder_id, target_folder_id)
                result.copied_folders += 1
                logger.info(f"Copied folder {folder_id} as {copy.id}")
            except Exception as e:
                self._record_failure(result, "folder", folder_id, e)

        result.success = not result.errors
        return result

    def _releasable_blobs(self, file_id: int, chunks: List[Chunk]) -> List[str]:
        blob_refs = list(dict.fromkeys(chunk.blob_ref for chunk in chunks))
        if not self.protect_shared_blobs:
            return blob_refs

        releasable = []
        for blob_ref in blob_refs:
            if self.chunk_repo.count_references(blob_ref, exclude_file_id=file_id):
                logger.info(f"Keeping blob {blob_ref}: still referenced by another file")
            else:
                releasable.append(blob_ref)
        return releasable

    def delete_file(self, file_id: int) -> None:
        """
        Delete a file's blobs, then its row (chunk rows cascade).

        Blob failures are logged and do not stop the metadata delete.
        """
        file_id = coerce_id(file_id, "file_id")
        self.file_repo.require(file_id)
        chunks = self.chunk_repo.get_chunks_by_file(file_id)

        failed = delete_blobs(self.blob_store, self._releasable_blobs(file_id, chunks))
        if failed:
            logger.warning(f"{len(failed)} blobs of file {file_id} could not be deleted")

        self.file_repo.delete_file(file_id)
        logger.info(f"Deleted file {file_id}")

    def delete_folder(self, folder_id: int) -> None:
        """
        Delete a folder tree, deepest folders first.

        For every folder its subfolders are gone before its own files are
        deleted, and its files are gone before its row is.
        """
        folder_id = coerce_id(folder_id, "folder_id")
        self.folder_repo.require(folder_id)

        order = []
        seen = set()
        stack = [folder_id]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            order.append(current)
            stack.extend(subfolder.id for subfolder in self.folder_repo.list_by_parent(current))

        for current in reversed(order):
            for file in self.file_repo.list_by_folder(current):
                self.delete_file(file.id)
            self.folder_repo.delete_folder(current)
            logger.info(f"Deleted folder {current}")

    def delete_items(self, file_ids, folder_ids) -> DeleteResult:
        file_ids = coerce_id_list(file_ids, "file_ids")
        folder_ids = coerce_id_list(folder_ids, "folder_ids")
        logger.info(f"Batch delete: {len(file_ids)} files, {len(folder_ids)} folders")

        result = DeleteResult()

        for file_id in file_ids:
            try:
                self.delete_file(file_id)
                result.deleted_files += 1
            except Exception as e:
                self._record_failure(result, "file", file_id, e)

        for folder_id in folder_ids:
            try:
                self.delete_folder(folder_id)
                result.deleted_folders += 1
            except Exception as e:
                self._record_failure(result, "folder", folder_id, e)

        result.success = not result.errors
        return result
