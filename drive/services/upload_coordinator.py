"""Staged multi-part uploads: stage, validate, commit, sweep."""

import sqlite3
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from common.constants import DEFAULT_MIME_TYPE
from common.logging_config import get_logger
from drive.config import (
    SWEEP_DELETES_BLOBS,
    TEMP_CHUNK_TTL_HOURS,
    VERIFY_CHUNK_INDEXES,
    VERIFY_DECLARED_SIZE,
)
from drive.database import get_db_connection
from drive.exceptions import (
    BackendFailureError,
    DriveException,
    InvalidArgumentError,
    NameConflictError,
    NoStagedChunksError,
)
from drive.repositories.chunk_repository import Chunk, ChunkRepository
from drive.repositories.file_repository import File, FileRepository
from drive.repositories.folder_repository import FolderRepository
from drive.repositories.temp_chunk_repository import TempChunk, TempChunkRepository
from drive.schemas.uploads import CleanupResult
from drive.services.blob_cleanup import delete_blobs
from drive.services.chunk_registry import ChunkRegistry
from drive.utils import chunk_label, utc_now, validate_upload

logger = get_logger(__name__)

SizeCheck = Callable[[int, Sequence[TempChunk]], None]


class UploadCoordinator:
    """
    Turns independently uploaded pieces into a durable file record.

    Per upload id the lifecycle is staging -> merge -> committed, or aborted
    by a failed merge, an explicit cleanup or the TTL sweep. Calls for the
    same upload id must be serialized by the caller.
    """

    def __init__(
        self,
        blob_store,
        clock: Callable[[], datetime] = utc_now,
        verify_chunk_indexes: bool = VERIFY_CHUNK_INDEXES,
        verify_declared_size: bool = VERIFY_DECLARED_SIZE,
        declared_size_check: Optional[SizeCheck] = None,
        sweep_deletes_blobs: bool = SWEEP_DELETES_BLOBS,
        ttl: timedelta = timedelta(hours=TEMP_CHUNK_TTL_HOURS),
    ):
        self.blob_store = blob_store
        self.clock = clock
        self.verify_chunk_indexes = verify_chunk_indexes
        if declared_size_check is None and verify_declared_size:
            declared_size_check = ChunkRegistry.check_declared_size
        self.declared_size_check = declared_size_check
        self.sweep_deletes_blobs = sweep_deletes_blobs
        self.ttl = ttl

        self.registry = ChunkRegistry()
        self.file_repo = FileRepository()
        self.folder_repo = FolderRepository()
        self.chunk_repo = ChunkRepository()
        self.temp_repo = TempChunkRepository()

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
        if not upload_id:
            raise InvalidArgumentError("Upload ID is required")
        if chunk_index < 0:
            raise InvalidArgumentError(
                f"Invalid chunk index {chunk_index}",
                {"upload_id": upload_id, "chunk_index": chunk_index},
            )
        validate_upload(original_file_name, original_file_size)

        part = f"{chunk_index + 1}/{total_chunks}" if total_chunks else str(chunk_index)
        logger.info(f"Staging chunk {part} of {original_file_name} [upload_id={upload_id}, size={len(data)}]")

        descriptors = self.blob_store.store(data, chunk_label(original_file_name, chunk_index, total_chunks))
        if len(descriptors) != 1:
            delete_blobs(self.blob_store, [d.blob_ref for d in descriptors])
            raise InvalidArgumentError(
                "Chunk exceeds the backend single-object limit",
                {"upload_id": upload_id, "chunk_index": chunk_index, "size": len(data)},
            )
        blob = descriptors[0]

        try:
            temp_chunk = self.temp_repo.create_temp_chunk(
                upload_id=upload_id,
                chunk_index=chunk_index,
                blob_ref=blob.blob_ref,
                size=blob.size,
                original_file_name=original_file_name,
                original_file_size=original_file_size,
                folder_id=folder_id,
                created_at=self.clock(),
            )
        except Exception as e:
            logger.error(f"Failed to record staged chunk {chunk_index} [upload_id={upload_id}]: {e}", exc_info=True)
            delete_blobs(self.blob_store, [blob.blob_ref])
            if isinstance(e, sqlite3.Error):
                raise BackendFailureError(
                    f"Failed to record staged chunk: {e}",
                    {"upload_id": upload_id, "chunk_index": chunk_index},
                ) from e
            raise

        logger.info(f"Staged chunk {part} [upload_id={upload_id}, blob_ref={blob.blob_ref}]")
        return temp_chunk

    def staged_chunks(self, upload_id: str) -> List[TempChunk]:
        return self.temp_repo.get_by_upload(upload_id)

    def merge(
        self,
        upload_id: str,
        file_name: str,
        file_size: int,
        mime_type: Optional[str],
        folder_id: Optional[int],
        declared_chunks: Sequence,
    ) -> File:
        """
        Commit the staged chunks of an upload as one file.

        The file row, its chunk rows and the removal of the staging rows are
        one transaction. The caller-declared ``file_size`` is stored as given
        unless a declared-size check is configured.

        Raises:
            NoStagedChunksError: nothing is staged for ``upload_id``
            CountMismatchError: staged chunks disagree with ``declared_chunks``
        """
        expected_count = len(declared_chunks)
        logger.info(f"Merging {file_name} [upload_id={upload_id}, declared_chunks={expected_count}]")

        try:
            temp_chunks = self.temp_repo.get_by_upload(upload_id)
            if not temp_chunks:
                raise NoStagedChunksError("No staged chunks found for upload", {"upload_id": upload_id})

            self.registry.validate_complete(temp_chunks, expected_count)
            if self.verify_chunk_indexes:
                self.registry.validate_index_set(temp_chunks, expected_count)
            if self.declared_size_check is not None:
                self.declared_size_check(file_size, temp_chunks)

            file = self._commit(upload_id, file_name, file_size, mime_type or DEFAULT_MIME_TYPE, folder_id, temp_chunks)
        except Exception as e:
            logger.error(f"Merge failed for {file_name} [upload_id={upload_id}]: {e}")
            cleanup = self.cleanup_upload(upload_id)
            if not cleanup.success:
                logger.warning(f"Cleanup after failed merge did not complete [upload_id={upload_id}]: {cleanup.error}")
            if isinstance(e, DriveException):
                e.context.setdefault("upload_id", upload_id)
            raise

        logger.info(f"Merged {len(temp_chunks)} chunks into file {file.id} [upload_id={upload_id}]")
        return file

    def _commit(
        self,
        upload_id: str,
        file_name: str,
        file_size: int,
        mime_type: str,
        folder_id: Optional[int],
        temp_chunks: Sequence[TempChunk],
    ) -> File:
        with get_db_connection() as conn:
            try:
                file = self.file_repo.create_file(file_name, folder_id, file_size, mime_type, conn=conn)
                self.chunk_repo.create_chunks(
                    [
                        Chunk(
                            id=None,
                            file_id=file.id,
                            chunk_index=temp_chunk.chunk_index,
                            blob_ref=temp_chunk.blob_ref,
                            size=temp_chunk.size,
                        )
                        for temp_chunk in temp_chunks
                    ],
                    conn=conn,
                )
                self.temp_repo.delete_by_upload(upload_id, conn=conn)
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise BackendFailureError(f"Failed to commit upload: {e}", {"upload_id": upload_id}) from e
            except Exception:
                conn.rollback()
                raise
        return file

    def cleanup_upload(self, upload_id: str) -> CleanupResult:
        """
        Abort an upload: delete its staged blobs, then its staging rows.

        Individual blob delete failures are logged and skipped. Never raises;
        a failure is reported in the returned result.
        """
        logger.info(f"Cleaning up upload [upload_id={upload_id}]")
        try:
            temp_chunks = self.temp_repo.get_by_upload(upload_id)
            if not temp_chunks:
                logger.info(f"No staged chunks to clean up [upload_id={upload_id}]")
                return CleanupResult(upload_id=upload_id, success=True, message="No staged chunks to clean up")

            failed = delete_blobs(self.blob_store, [chunk.blob_ref for chunk in temp_chunks])
            if failed:
                logger.warning(f"{len(failed)} staged blobs could not be deleted [upload_id={upload_id}]")

            self.temp_repo.delete_by_upload(upload_id)
        except Exception as e:
            logger.error(f"Cleanup failed [upload_id={upload_id}]: {e}", exc_info=True)
            return CleanupResult(upload_id=upload_id, success=False, error=str(e))

        logger.info(f"Cleared {len(temp_chunks)} staged chunks [upload_id={upload_id}]")
        return CleanupResult(
            upload_id=upload_id,
            success=True,
            cleared_chunks=len(temp_chunks),
            message=f"Cleared {len(temp_chunks)} staged chunks",
        )

    def sweep_expired(self, now: Optional[datetime] = None, ttl: Optional[timedelta] = None) -> int:
        """
        Remove staging rows older than ``now - ttl``.

        Returns:
            Number of staging rows removed
        """
        now = now if now is not None else self.clock()
        cutoff = now - (ttl if ttl is not None else self.ttl)

        if self.sweep_deletes_blobs:
            expired = self.temp_repo.get_expired(cutoff)
            delete_blobs(self.blob_store, [chunk.blob_ref for chunk in expired])

        removed = self.temp_repo.delete_expired(cutoff)
        logger.info(f"Swept {removed} expired staged chunks [cutoff={cutoff.isoformat()}]")
        return removed

    def upload_whole(
        self,
        data: bytes,
        file_name: str,
        folder_id: Optional[int] = None,
        mime_type: Optional[str] = None,
    ) -> File:
        """
        Single-request upload; the backend decides how to split the payload.
        """
        validate_upload(file_name, len(data))
        if folder_id is not None:
            self.folder_repo.require(folder_id)
        if self.file_repo.find_sibling(file_name, folder_id):
            raise NameConflictError(
                "File with the same name already exists",
                {"name": file_name, "folder_id": folder_id},
            )

        logger.info(f"Uploading {file_name} [size={len(data)}, folder_id={folder_id}]")
        descriptors = self.blob_store.store(data, file_name)

        try:
            with get_db_connection() as conn:
                try:
                    file = self.file_repo.create_file(
                        file_name, folder_id, len(data), mime_type or DEFAULT_MIME_TYPE, conn=conn
                    )
                    self.chunk_repo.create_chunks(
                        [
                            Chunk(id=None, file_id=file.id, chunk_index=index, blob_ref=d.blob_ref, size=d.size)
                            for index, d in enumerate(descriptors)
                        ],
                        conn=conn,
                    )
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
        except Exception as e:
            logger.error(f"Upload of {file_name} failed: {e}")
            delete_blobs(self.blob_store, [d.blob_ref for d in descriptors])
            if isinstance(e, sqlite3.Error):
                raise BackendFailureError(f"Failed to record upload: {e}", {"file_name": file_name}) from e
            raise

        logger.info(f"Uploaded {file_name} as file {file.id} with {len(descriptors)} chunks")
        return file
