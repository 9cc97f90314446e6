"""Folder repository for database operations."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from drive.database import get_db_connection, use_connection
from drive.exceptions import NameConflictError, NotFoundError
from drive.utils import format_timestamp, parse_timestamp, utc_now

logger = get_logger(__name__)

FOLDER_COLUMNS = "id, name, parent_id, created_at"


@dataclass
class Folder:
    id: int
    name: str
    parent_id: Optional[int]
    created_at: datetime


def _row_to_folder(row: sqlite3.Row) -> Folder:
    return Folder(
        id=row["id"],
        name=row["name"],
        parent_id=row["parent_id"],
        created_at=parse_timestamp(row["created_at"]),
    )


class FolderRepository:
    @staticmethod
    def get_by_id(folder_id: int, conn=None) -> Optional[Folder]:
        with use_connection(conn) as conn:
            row = conn.execute(
                f"SELECT {FOLDER_COLUMNS} FROM folders WHERE id = ?",
                (folder_id,)
            ).fetchone()
            return _row_to_folder(row) if row else None

    @staticmethod
    def require(folder_id: int, conn=None) -> Folder:
        folder = FolderRepository.get_by_id(folder_id, conn=conn)
        if folder is None:
            raise NotFoundError(f"Folder {folder_id} not found", {"folder_id": folder_id})
        return folder

    @staticmethod
    def list_by_parent(parent_id: Optional[int], conn=None) -> List[Folder]:
        with use_connection(conn) as conn:
            rows = conn.execute(
                f"SELECT {FOLDER_COLUMNS} FROM folders WHERE parent_id IS ? ORDER BY name ASC",
                (parent_id,)
            ).fetchall()
            return [_row_to_folder(row) for row in rows]

    @staticmethod
    def find_sibling(name: str, parent_id: Optional[int], exclude_id: Optional[int] = None, conn=None) -> Optional[Folder]:
        with use_connection(conn) as conn:
            row = conn.execute(
                f"""
                SELECT {FOLDER_COLUMNS} FROM folders
                WHERE name = ? AND parent_id IS ? AND id IS NOT ?
                """,
                (name, parent_id, exclude_id)
            ).fetchone()
            return _row_to_folder(row) if row else None

    @staticmethod
    def create_folder(name: str, parent_id: Optional[int], conn=None) -> Folder:
        logger.debug(f"Creating folder [name={name}, parent_id={parent_id}]")
        with use_connection(conn) as conn:
            if parent_id is not None:
                FolderRepository.require(parent_id, conn=conn)
            if FolderRepository.find_sibling(name, parent_id, conn=conn):
                raise NameConflictError(
                    "Folder with the same name already exists",
                    {"name": name, "parent_id": parent_id},
                )

            created_at = utc_now()
            try:
                cursor = conn.execute(
                    "INSERT INTO folders (name, parent_id, created_at) VALUES (?, ?, ?)",
                    (name, parent_id, format_timestamp(created_at))
                )
            except sqlite3.IntegrityError as e:
                raise NameConflictError(
                    "Folder with the same name already exists",
                    {"name": name, "parent_id": parent_id},
                ) from e

            return Folder(id=cursor.lastrowid, name=name, parent_id=parent_id, created_at=created_at)

    @staticmethod
    def rename_folder(folder_id: int, name: str, conn=None) -> Folder:
        with use_connection(conn) as conn:
            folder = FolderRepository.require(folder_id, conn=conn)
            if FolderRepository.find_sibling(name, folder.parent_id, exclude_id=folder_id, conn=conn):
                raise NameConflictError(
                    "Folder with the same name already exists",
                    {"name": name, "parent_id": folder.parent_id},
                )

            try:
                conn.execute("UPDATE folders SET name = ? WHERE id = ?", (name, folder_id))
            except sqlite3.IntegrityError as e:
                raise NameConflictError(
                    "Folder with the same name already exists",
                    {"name": name, "parent_id": folder.parent_id},
                ) from e

            folder.name = name
            return folder

    @staticmethod
    def update_parent(folder_id: int, parent_id: Optional[int], conn=None) -> Folder:
        with use_connection(conn) as conn:
            folder = FolderRepository.require(folder_id, conn=conn)
            if parent_id is not None:
                FolderRepository.require(parent_id, conn=conn)
            if FolderRepository.find_sibling(folder.name, parent_id, exclude_id=folder_id, conn=conn):
                raise NameConflictError(
                    "A folder with the same name already exists in the target folder",
                    {"name": folder.name, "parent_id": parent_id},
                )

            try:
                conn.execute("UPDATE folders SET parent_id = ? WHERE id = ?", (parent_id, folder_id))
            except sqlite3.IntegrityError as e:
                raise NameConflictError(
                    "A folder with the same name already exists in the target folder",
                    {"name": folder.name, "parent_id": parent_id},
                ) from e

            folder.parent_id = parent_id
            return folder

    @staticmethod
    def delete_folder(folder_id: int, conn=None) -> None:
        logger.debug(f"Deleting folder row [folder_id={folder_id}]")
        with use_connection(conn) as conn:
            cursor = conn.execute("DELETE FROM folders WHERE id = ?", (folder_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"Folder {folder_id} not found", {"folder_id": folder_id})

    @staticmethod
    def get_path(folder_id: Optional[int]) -> List[Folder]:
        """
        Ancestor chain of a folder, root first.
        """
        path: List[Folder] = []
        seen = set()
        with get_db_connection() as conn:
            current_id = folder_id
            while current_id is not None and current_id not in seen:
                seen.add(current_id)
                folder = FolderRepository.get_by_id(current_id, conn=conn)
                if folder is None:
                    break
                path.insert(0, folder)
                current_id = folder.parent_id
        return path
