"""Repository for chunks staged by in-progress uploads."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from drive.database import use_connection
from drive.utils import format_timestamp, parse_timestamp

logger = get_logger(__name__)

TEMP_CHUNK_COLUMNS = (
    "id, upload_id, chunk_index, blob_ref, size, "
    "original_file_name, original_file_size, folder_id, created_at"
)


@dataclass
class TempChunk:
    id: int
    upload_id: str
    chunk_index: int
    blob_ref: str
    size: int
    original_file_name: str
    original_file_size: int
    folder_id: Optional[int]
    created_at: datetime


def _row_to_temp_chunk(row: sqlite3.Row) -> TempChunk:
    return TempChunk(
        id=row["id"],
        upload_id=row["upload_id"],
        chunk_index=row["chunk_index"],
        blob_ref=row["blob_ref"],
        size=row["size"],
        original_file_name=row["original_file_name"],
        original_file_size=row["original_file_size"],
        folder_id=row["folder_id"],
        created_at=parse_timestamp(row["created_at"]),
    )


class TempChunkRepository:
    @staticmethod
    def create_temp_chunk(
        upload_id: str,
        chunk_index: int,
        blob_ref: str,
        size: int,
        original_file_name: str,
        original_file_size: int,
        folder_id: Optional[int],
        created_at: datetime,
        conn=None
    ) -> TempChunk:
        with use_connection(conn) as conn:
            cursor = conn.execute(
                """
                INSERT INTO temp_chunks
                (upload_id, chunk_index, blob_ref, size, original_file_name, original_file_size, folder_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    upload_id,
                    chunk_index,
                    blob_ref,
                    size,
                    original_file_name,
                    original_file_size,
                    folder_id,
                    format_timestamp(created_at),
                )
            )

            return TempChunk(
                id=cursor.lastrowid,
                upload_id=upload_id,
                chunk_index=chunk_index,
                blob_ref=blob_ref,
                size=size,
                original_file_name=original_file_name,
                original_file_size=original_file_size,
                folder_id=folder_id,
                created_at=created_at,
            )

    @staticmethod
    def get_by_upload(upload_id: str, conn=None) -> List[TempChunk]:
        with use_connection(conn) as conn:
            rows = conn.execute(
                f"""
                SELECT {TEMP_CHUNK_COLUMNS} FROM temp_chunks
                WHERE upload_id = ?
                ORDER BY chunk_index ASC, id ASC
                """,
                (upload_id,)
            ).fetchall()
            return [_row_to_temp_chunk(row) for row in rows]

    @staticmethod
    def delete_by_upload(upload_id: str, conn=None) -> int:
        with use_connection(conn) as conn:
            cursor = conn.execute("DELETE FROM temp_chunks WHERE upload_id = ?", (upload_id,))
            logger.debug(f"Deleted {cursor.rowcount} temp chunks [upload_id={upload_id}]")
            return cursor.rowcount

    @staticmethod
    def get_expired(cutoff: datetime, conn=None) -> List[TempChunk]:
        with use_connection(conn) as conn:
            rows = conn.execute(
                f"SELECT {TEMP_CHUNK_COLUMNS} FROM temp_chunks WHERE created_at < ? ORDER BY id",
                (format_timestamp(cutoff),)
            ).fetchall()
            return [_row_to_temp_chunk(row) for row in rows]

    @staticmethod
    def delete_expired(cutoff: datetime, conn=None) -> int:
        with use_connection(conn) as conn:
            cursor = conn.execute(
                "DELETE FROM temp_chunks WHERE created_at < ?",
                (format_timestamp(cutoff),)
            )
            return cursor.rowcount
