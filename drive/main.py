"""Entry point: builds the storage service and runs the staging sweeper."""

import asyncio
from typing import Optional

from common.logging_config import setup_logging
from blobstore import BlobStore, HttpBlobStore, LocalBlobStore
from drive import config
from drive.database import init_database
from drive.services.storage_service import StorageService
from drive.sweep_task import ExpiredUploadSweeper

logger = setup_logging('sweeper')


def build_blob_store(backend: Optional[str] = None) -> BlobStore:
    backend = (backend or config.BLOB_BACKEND).lower()
    if backend == "local":
        return LocalBlobStore(config.BLOB_DIR)
    if backend == "http":
        return HttpBlobStore(config.BLOB_URL, token=config.BLOB_TOKEN, timeout=config.BLOB_TIMEOUT_SECONDS)
    raise ValueError(f"Unknown blob backend: {backend}")


def build_storage_service(blob_store: Optional[BlobStore] = None) -> StorageService:
    """
    Initialize the metadata database and wire the engine services.
    """
    init_database()
    return StorageService(blob_store or build_blob_store())


async def run_sweeper(service: StorageService) -> None:
    sweeper = ExpiredUploadSweeper(service.uploads)
    await sweeper.start()
    try:
        await sweeper.wait()
    finally:
        await sweeper.stop()


def main() -> None:
    blob_store = build_blob_store()
    try:
        service = build_storage_service(blob_store)
        logger.info(f"Storage engine ready [database={config.DATABASE_PATH}, backend={config.BLOB_BACKEND}]")
        asyncio.run(run_sweeper(service))
    except KeyboardInterrupt:
        logger.info("Sweeper interrupted, shutting down")
    finally:
        blob_store.close()


if __name__ == "__main__":
    main()
