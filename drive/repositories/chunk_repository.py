"""Chunk repository for database operations."""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from common.logging_config import get_logger
from drive.database import use_connection

logger = get_logger(__name__)


@dataclass
class Chunk:
    id: Optional[int]
    file_id: int
    chunk_index: int
    blob_ref: str
    size: int


class ChunkRepository:
    @staticmethod
    def create_chunks(chunks: Sequence[Chunk], conn=None) -> List[Chunk]:
        if not chunks:
            return []

        logger.debug(f"Creating {len(chunks)} chunks for file_id={chunks[0].file_id}")
        created = []
        with use_connection(conn) as conn:
            for chunk in chunks:
                cursor = conn.execute(
                    """
                    INSERT INTO chunks (file_id, chunk_index, blob_ref, size)
                    VALUES (?, ?, ?, ?)
                    """,
                    (chunk.file_id, chunk.chunk_index, chunk.blob_ref, chunk.size)
                )
                created.append(Chunk(
                    id=cursor.lastrowid,
                    file_id=chunk.file_id,
                    chunk_index=chunk.chunk_index,
                    blob_ref=chunk.blob_ref,
                    size=chunk.size,
                ))
        return created

    @staticmethod
    def get_chunks_by_file(file_id: int, conn=None) -> List[Chunk]:
        with use_connection(conn) as conn:
            rows = conn.execute(
                """
                SELECT id, file_id, chunk_index, blob_ref, size
                FROM chunks
                WHERE file_id = ?
                ORDER BY chunk_index
                """,
                (file_id,)
            ).fetchall()

            return [
                Chunk(
                    id=row["id"],
                    file_id=row["file_id"],
                    chunk_index=row["chunk_index"],
                    blob_ref=row["blob_ref"],
                    size=row["size"],
                )
                for row in rows
            ]

    @staticmethod
    def count_references(blob_ref: str, exclude_file_id: Optional[int] = None, conn=None) -> int:
        """
        Number of chunk rows pointing at a blob, optionally ignoring one file's rows.
        """
        with use_connection(conn) as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS refs FROM chunks WHERE blob_ref = ? AND file_id IS NOT ?",
                (blob_ref, exclude_file_id)
            ).fetchone()
            return row["refs"]
