from __future__ import annotations

from typing import Generator

from fastapi import Header

from pharmaflow.app.db.session import SessionLocal
from pharmaflow.app.settings import settings
from pharmaflow.services.blob_store import BlobStore, LocalBlobStore


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.BLOB_ROOT, settings.BLOB_URL_PREFIX)


def get_actor(x_actor: str | None = Header(default=None)) -> str:
    # no auth layer: the caller names itself, archives record it
    return (x_actor or "").strip() or "system"
