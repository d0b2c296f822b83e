"""
Filesystem blob store for payment evidence.

Writes go to a temporary sibling file and are renamed into place, so a reader
never sees a half-written blob. Blocking file I/O runs in a worker thread.
"""

import asyncio
import os
import uuid
from pathlib import Path

from app.core.logging import get_logger
from app.services.interfaces.blob_store import BlobNotFound, BlobStore, BlobStoreError

logger = get_logger(__name__)


class LocalBlobStore(BlobStore):
    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if self.root != target and self.root not in target.parents:
            raise BlobStoreError(f"Path escapes blob root: {path}")
        return target

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, target)

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as e:
            logger.error("blob_upload_failed", path=path, error=str(e))
            raise BlobStoreError(str(e)) from e
        logger.debug("blob_uploaded", path=path, size=len(data), content_type=content_type)

    async def download(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError as e:
            raise BlobNotFound(path) from e
        except OSError as e:
            logger.error("blob_download_failed", path=path, error=str(e))
            raise BlobStoreError(str(e)) from e

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink, True)
        except OSError as e:
            logger.error("blob_delete_failed", path=path, error=str(e))
            raise BlobStoreError(str(e)) from e
        logger.debug("blob_deleted", path=path)
