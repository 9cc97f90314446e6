"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from drive.config import DATABASE_PATH


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS folders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                parent_id INTEGER,
                created_at TEXT NOT NULL,
                FOREIGN KEY(parent_id) REFERENCES folders(id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                folder_id INTEGER,
                size INTEGER NOT NULL,
                mime_type TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY(folder_id) REFERENCES folders(id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chunks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                file_id INTEGER NOT NULL,
                chunk_index INTEGER NOT NULL,
                blob_ref TEXT NOT NULL,
                size INTEGER NOT NULL,
                UNIQUE(file_id, chunk_index),
                FOREIGN KEY(file_id) REFERENCES files(id) ON DELETE CASCADE
            )
        """)

        # No uniqueness on (upload_id, chunk_index): re-staging an index adds a row
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS temp_chunks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                upload_id TEXT NOT NULL,
                chunk_index INTEGER NOT NULL,
                blob_ref TEXT NOT NULL,
                size INTEGER NOT NULL,
                original_file_name TEXT NOT NULL,
                original_file_size INTEGER NOT NULL,
                folder_id INTEGER,
                created_at TEXT NOT NULL
            )
        """)

        # NULL parents are distinct in plain UNIQUE indexes, so root siblings go through COALESCE
        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_folders_parent_name_unique
            ON folders(COALESCE(parent_id, 0), name)
        """)

        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_files_folder_name_unique
            ON files(COALESCE(folder_id, 0), name)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_chunks_blob_ref ON chunks(blob_ref)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_temp_chunks_upload_id ON temp_chunks(upload_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_temp_chunks_created_at ON temp_chunks(created_at)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def use_connection(conn: Optional[sqlite3.Connection] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Reuse the caller's connection, or open, commit and close a private one.

    Repositories take an optional ``conn`` so several writes can share one
    transaction owned by the service layer.
    """
    if conn is not None:
        yield conn
        return

    with get_db_connection() as own_conn:
        try:
            yield own_conn
            own_conn.commit()
        except Exception:
            own_conn.rollback()
            raise
