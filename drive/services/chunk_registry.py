"""Ordered chunk sets per file and the completeness checks run at merge time."""

from typing import Iterable, List, Sequence

from common.logging_config import get_logger
from drive.exceptions import CountMismatchError
from drive.repositories.chunk_repository import Chunk, ChunkRepository
from drive.repositories.file_repository import FileRepository
from drive.repositories.temp_chunk_repository import TempChunk

logger = get_logger(__name__)


class ChunkRegistry:
    def __init__(self):
        self.file_repo = FileRepository()
        self.chunk_repo = ChunkRepository()

    def chunks_of(self, file_id: int, conn=None) -> List[Chunk]:
        """
        Chunks of a file ordered by chunk index.

        Raises:
            NotFoundError: the file does not exist
        """
        self.file_repo.require(file_id, conn=conn)
        return self.chunk_repo.get_chunks_by_file(file_id, conn=conn)

    @staticmethod
    def total_size(chunks: Iterable) -> int:
        return sum(chunk.size for chunk in chunks)

    @staticmethod
    def validate_complete(temp_chunks: Sequence[TempChunk], expected_count: int) -> None:
        """
        Staged chunk count must equal the count the merge request declares.

        Raises:
            CountMismatchError: counts differ
        """
        if len(temp_chunks) != expected_count:
            raise CountMismatchError(
                f"Chunk count mismatch, expected: {expected_count}, actual: {len(temp_chunks)}",
                {"expected": expected_count, "actual": len(temp_chunks)},
            )

    @staticmethod
    def validate_index_set(temp_chunks: Sequence[TempChunk], expected_count: int) -> None:
        """
        Staged indexes must be exactly ``0..expected_count-1`` with no repeats.

        Raises:
            CountMismatchError: an index is missing, repeated or out of range
        """
        indexes = [chunk.chunk_index for chunk in temp_chunks]
        expected = set(range(expected_count))
        missing = sorted(expected - set(indexes))
        unexpected = sorted(set(indexes) - expected)
        duplicates = sorted({index for index in indexes if indexes.count(index) > 1})

        if missing or unexpected or duplicates:
            raise CountMismatchError(
                "Staged chunk indexes are not contiguous",
                {"missing": missing, "unexpected": unexpected, "duplicates": duplicates},
            )

    @staticmethod
    def check_declared_size(declared_size: int, chunks: Sequence) -> None:
        """
        Strict-mode hook: declared file size must equal the sum of chunk sizes.
        """
        actual = ChunkRegistry.total_size(chunks)
        if actual != declared_size:
            raise CountMismatchError(
                f"Declared size {declared_size} does not match staged size {actual}",
                {"declared_size": declared_size, "actual_size": actual},
            )

    def verify(self, file_id: int) -> List[str]:
        """
        List the ways a stored file violates its chunk invariants.

        An empty list means the size matches the chunk total and the chunk
        indexes are exactly ``0..n-1``.
        """
        file = self.file_repo.require(file_id)
        chunks = self.chunk_repo.get_chunks_by_file(file_id)
        problems = []

        if not chunks:
            problems.append("file has no chunks")

        total = self.total_size(chunks)
        if total != file.size:
            problems.append(f"size {file.size} does not match chunk total {total}")

        indexes = [chunk.chunk_index for chunk in chunks]
        if indexes != list(range(len(chunks))):
            problems.append(f"chunk indexes {indexes} are not contiguous from 0")

        if problems:
            logger.warning(f"File {file_id} failed verification: {'; '.join(problems)}")
        return problems
