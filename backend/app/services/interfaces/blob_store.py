"""
Blob store interface for payment evidence files.
"""

from abc import ABC, abstractmethod


class BlobNotFound(Exception):
    pass


class BlobStoreError(Exception):
    pass


class BlobStore(ABC):
    """
    Paths are namespaced `evidence/{user_id}/{event_id}/{filename}`.

    Implementations:
    - LocalBlobStore: files under a local directory
    """

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store data at path, replacing anything already there. Raises BlobStoreError."""

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Return the stored bytes. Raises BlobNotFound or BlobStoreError."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove path. Deleting a missing path is not an error."""
