"""HTTP client for a remote blob backend."""

from typing import List, Optional, Sequence

import httpx

from common.logging_config import get_logger
from common.types import BlobDescriptor
from blobstore.base import BlobStore
from drive.exceptions import BackendFailureError, NotFoundError

logger = get_logger(__name__)


class HttpBlobStore(BlobStore):
    """
    Blob store reached over HTTP.

    Endpoints:
        POST   /blobs         multipart ``file`` + ``label`` -> {"blobs": [{"blob_ref", "size"}, ...]}
        GET    /blobs/{ref}   raw bytes
        DELETE /blobs/{ref}

    Calls are not retried; a failed call surfaces as ``BackendFailureError``.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 60.0):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.session = httpx.Client(base_url=base_url, timeout=timeout, headers=headers)
        logger.info(f"Initialized HttpBlobStore [base_url={base_url}]")

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, endpoint: str, blob_ref: Optional[str] = None, **kwargs) -> httpx.Response:
        context = {"endpoint": endpoint}
        if blob_ref is not None:
            context["blob_ref"] = blob_ref

        try:
            response = self.session.request(method, endpoint, **kwargs)
        except httpx.HTTPError as e:
            raise BackendFailureError(f"Blob backend unreachable: {e}", context) from e

        if response.status_code == 404:
            raise NotFoundError(f"Blob {blob_ref} not found", context)
        if response.status_code >= 400:
            context["status_code"] = response.status_code
            raise BackendFailureError(
                f"Blob backend returned {response.status_code} for {method} {endpoint}",
                context,
            )
        return response

    def store(self, data: bytes, label: str) -> List[BlobDescriptor]:
        response = self._request(
            "POST",
            "/blobs",
            files={"file": (label, data, "application/octet-stream")},
            data={"label": label},
        )

        try:
            payload = response.json()
            descriptors = [
                BlobDescriptor(blob_ref=str(item["blob_ref"]), size=int(item["size"]))
                for item in payload["blobs"]
            ]
        except (ValueError, KeyError, TypeError) as e:
            raise BackendFailureError(f"Malformed store response for {label}: {e}", {"label": label}) from e

        if not descriptors:
            raise BackendFailureError(f"Blob backend returned no references for {label}", {"label": label})

        logger.debug(f"Stored {label} as {len(descriptors)} remote blob(s)")
        return descriptors

    def retrieve(self, blob_refs: Sequence[str]) -> bytes:
        return b"".join(
            self._request("GET", f"/blobs/{blob_ref}", blob_ref=blob_ref).content
            for blob_ref in blob_refs
        )

    def delete(self, blob_ref: str) -> None:
        self._request("DELETE", f"/blobs/{blob_ref}", blob_ref=blob_ref)
