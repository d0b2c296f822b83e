"""
Collaborator factory.
Configures which identity provider and blob store implementations to use.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.infrastructure.jwt_identity import JWTIdentityProvider
from app.infrastructure.local_blob_store import LocalBlobStore
from app.services.interfaces.blob_store import BlobStore
from app.services.interfaces.identity import IdentityProvider

settings = get_settings()


def build_identity_provider(db: AsyncSession) -> IdentityProvider:
    """Identity provider bound to the request's session."""
    return JWTIdentityProvider(db)


def build_blob_store() -> BlobStore:
    """
    Blob store selection based on BLOB_STORE:
    - local: files under EVIDENCE_ROOT
    """
    if settings.BLOB_STORE == "local":
        return LocalBlobStore(settings.EVIDENCE_ROOT)
    raise ValueError(f"Unknown BLOB_STORE backend: {settings.BLOB_STORE}")


# Singleton instance
_blob_store: BlobStore = None


def get_blob_store_instance() -> BlobStore:
    """Get blob store singleton."""
    global _blob_store
    if _blob_store is None:
        _blob_store = build_blob_store()
    return _blob_store
