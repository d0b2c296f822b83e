"""
Service interfaces for dependency inversion.
Allows swapping collaborator implementations without changing business logic.
"""

from .identity import Identity, IdentityProvider
from .blob_store import BlobStore, BlobNotFound, BlobStoreError

__all__ = ['Identity', 'IdentityProvider', 'BlobStore', 'BlobNotFound', 'BlobStoreError']
