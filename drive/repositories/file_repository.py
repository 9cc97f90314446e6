"""File repository for database operations."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from drive.database import use_connection
from drive.exceptions import NameConflictError, NotFoundError
from drive.repositories.folder_repository import FolderRepository
from drive.utils import format_timestamp, parse_timestamp, utc_now

logger = get_logger(__name__)

FILE_COLUMNS = "id, name, folder_id, size, mime_type, created_at, updated_at"


@dataclass
class File:
    id: int
    name: str
    folder_id: Optional[int]
    size: int
    mime_type: str
    created_at: datetime
    updated_at: datetime


def _row_to_file(row: sqlite3.Row) -> File:
    return File(
        id=row["id"],
        name=row["name"],
        folder_id=row["folder_id"],
        size=row["size"],
        mime_type=row["mime_type"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


def _name_conflict(name: str, folder_id: Optional[int], message: str = "File with the same name already exists") -> NameConflictError:
    return NameConflictError(message, {"name": name, "folder_id": folder_id})


class FileRepository:
    @staticmethod
    def get_by_id(file_id: int, conn=None) -> Optional[File]:
        with use_connection(conn) as conn:
            row = conn.execute(
                f"SELECT {FILE_COLUMNS} FROM files WHERE id = ?",
                (file_id,)
            ).fetchone()
            return _row_to_file(row) if row else None

    @staticmethod
    def require(file_id: int, conn=None) -> File:
        file = FileRepository.get_by_id(file_id, conn=conn)
        if file is None:
            raise NotFoundError(f"File {file_id} not found", {"file_id": file_id})
        return file

    @staticmethod
    def list_by_folder(folder_id: Optional[int], conn=None) -> List[File]:
        with use_connection(conn) as conn:
            rows = conn.execute(
                f"SELECT {FILE_COLUMNS} FROM files WHERE folder_id IS ? ORDER BY name ASC",
                (folder_id,)
            ).fetchall()
            return [_row_to_file(row) for row in rows]

    @staticmethod
    def find_sibling(name: str, folder_id: Optional[int], exclude_id: Optional[int] = None, conn=None) -> Optional[File]:
        with use_connection(conn) as conn:
            row = conn.execute(
                f"""
                SELECT {FILE_COLUMNS} FROM files
                WHERE name = ? AND folder_id IS ? AND id IS NOT ?
                """,
                (name, folder_id, exclude_id)
            ).fetchone()
            return _row_to_file(row) if row else None

    @staticmethod
    def create_file(name: str, folder_id: Optional[int], size: int, mime_type: str, conn=None) -> File:
        logger.debug(f"Creating file [name={name}, folder_id={folder_id}, size={size}]")
        with use_connection(conn) as conn:
            if folder_id is not None:
                FolderRepository.require(folder_id, conn=conn)
            if FileRepository.find_sibling(name, folder_id, conn=conn):
                raise _name_conflict(name, folder_id)

            now = utc_now()
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO files (name, folder_id, size, mime_type, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (name, folder_id, size, mime_type, format_timestamp(now), format_timestamp(now))
                )
            except sqlite3.IntegrityError as e:
                raise _name_conflict(name, folder_id) from e

            return File(
                id=cursor.lastrowid,
                name=name,
                folder_id=folder_id,
                size=size,
                mime_type=mime_type,
                created_at=now,
                updated_at=now,
            )

    @staticmethod
    def rename_file(file_id: int, name: str, conn=None) -> File:
        with use_connection(conn) as conn:
            file = FileRepository.require(file_id, conn=conn)
            if FileRepository.find_sibling(name, file.folder_id, exclude_id=file_id, conn=conn):
                raise _name_conflict(name, file.folder_id)

            now = utc_now()
            try:
                conn.execute(
                    "UPDATE files SET name = ?, updated_at = ? WHERE id = ?",
                    (name, format_timestamp(now), file_id)
                )
            except sqlite3.IntegrityError as e:
                raise _name_conflict(name, file.folder_id) from e

            file.name = name
            file.updated_at = now
            return file

    @staticmethod
    def update_folder(file_id: int, folder_id: Optional[int], conn=None) -> File:
        with use_connection(conn) as conn:
            file = FileRepository.require(file_id, conn=conn)
            if folder_id is not None:
                FolderRepository.require(folder_id, conn=conn)

            message = "A file with the same name already exists in the target folder"
            if FileRepository.find_sibling(file.name, folder_id, exclude_id=file_id, conn=conn):
                raise _name_conflict(file.name, folder_id, message)

            now = utc_now()
            try:
                conn.execute(
                    "UPDATE files SET folder_id = ?, updated_at = ? WHERE id = ?",
                    (folder_id, format_timestamp(now), file_id)
                )
            except sqlite3.IntegrityError as e:
                raise _name_conflict(file.name, folder_id, message) from e

            file.folder_id = folder_id
            file.updated_at = now
            return file

    @staticmethod
    def delete_file(file_id: int, conn=None) -> None:
        """
        Delete a file row; its chunk rows go with it through ON DELETE CASCADE.
        """
        logger.debug(f"Deleting file row [file_id={file_id}]")
        with use_connection(conn) as conn:
            cursor = conn.execute("DELETE FROM files WHERE id = ?", (file_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"File {file_id} not found", {"file_id": file_id})
