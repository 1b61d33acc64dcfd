"""
Blob store collaborator (catalog images).

The pipeline only needs three capabilities: store bytes, resolve an id to a
URL, delete an id. LocalBlobStore keeps blobs as files under a root
directory, which the app serves as static files.
"""
from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Iterable, Protocol

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def put_blob(self, data: bytes, *, suffix: str = "") -> str: ...

    def get_blob_url(self, blob_id: str) -> str | None: ...

    def delete_blob(self, blob_id: str) -> None: ...


class LocalBlobStore:
    def __init__(self, root: Path, url_prefix: str = "/blobs") -> None:
        self.root = Path(root).expanduser()
        self.url_prefix = url_prefix.rstrip("/")

    def _path(self, blob_id: str) -> Path:
        # blob ids are generated here; refuse anything that walks out of root
        name = Path(blob_id).name
        if not name or name != blob_id:
            raise ValueError(f"Invalid blob id {blob_id!r}")
        return self.root / name

    def put_blob(self, data: bytes, *, suffix: str = "") -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        blob_id = f"{uuid.uuid4().hex}{suffix}"
        self._path(blob_id).write_bytes(data)
        logger.info("blob stored id=%s bytes=%d", blob_id, len(data))
        return blob_id

    def get_blob_url(self, blob_id: str) -> str | None:
        try:
            path = self._path(blob_id)
        except ValueError:
            return None
        if not path.exists():
            return None
        return f"{self.url_prefix}/{blob_id}"

    def delete_blob(self, blob_id: str) -> None:
        path = self._path(blob_id)
        if path.exists():
            path.unlink()
            logger.info("blob deleted id=%s", blob_id)


def blob_url(blobs: BlobStore | None, blob_id: str | None) -> str | None:
    if not blobs or not blob_id:
        return None
    return blobs.get_blob_url(blob_id)


def delete_blobs(blobs: BlobStore | None, blob_ids: Iterable[str | None]) -> int:
    """Remove blobs whose rows are already gone. Call after the commit."""
    if blobs is None:
        return 0
    removed = 0
    for blob_id in blob_ids:
        if blob_id:
            blobs.delete_blob(blob_id)
            removed += 1
    return removed
