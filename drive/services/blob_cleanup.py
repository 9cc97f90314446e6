"""Best-effort blob deletion shared by upload cleanup and namespace deletes."""

from typing import Iterable, List

from common.logging_config import get_logger

logger = get_logger(__name__)


def delete_blobs(blob_store, blob_refs: Iterable[str]) -> List[str]:
    """
    Delete blobs one at a time, logging and skipping failures.

    Args:
        blob_store: BlobStore to delete from
        blob_refs: References to delete, in order

    Returns:
        References that could not be deleted
    """
    failed = []
    for blob_ref in blob_refs:
        try:
            blob_store.delete(blob_ref)
            logger.debug(f"Deleted blob {blob_ref}")
        except Exception as e:
            logger.warning(f"Failed to delete blob {blob_ref}: {e}")
            failed.append(blob_ref)
    return failed
