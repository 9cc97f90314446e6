"""Engine-specific data type definitions."""

from dataclasses import dataclass
from typing import List, Optional

from drive.repositories.chunk_repository import Chunk
from drive.repositories.file_repository import File
from drive.repositories.folder_repository import Folder


@dataclass(frozen=True)
class DirectoryListing:
    """
    Direct children of one folder (``folder_id`` None is the root).
    """
    folder_id: Optional[int]
    folders: List[Folder]
    files: List[File]


@dataclass(frozen=True)
class FileInfo:
    file: File
    chunks: List[Chunk]


@dataclass(frozen=True)
class DownloadedFile:
    """
    Reassembled file bytes with the metadata an HTTP layer needs for headers.
    """
    data: bytes
    name: str
    mime_type: str
    size: int
