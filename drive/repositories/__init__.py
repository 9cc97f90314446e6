"""Repository layer for data access."""

from drive.repositories.folder_repository import Folder, FolderRepository
from drive.repositories.file_repository import File, FileRepository
from drive.repositories.chunk_repository import Chunk, ChunkRepository
from drive.repositories.temp_chunk_repository import TempChunk, TempChunkRepository

__all__ = [
    "Folder",
    "FolderRepository",
    "File",
    "FileRepository",
    "Chunk",
    "ChunkRepository",
    "TempChunk",
    "TempChunkRepository",
]
