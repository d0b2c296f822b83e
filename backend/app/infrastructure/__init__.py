"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .jwt_identity import JWTIdentityProvider
from .local_blob_store import LocalBlobStore

__all__ = ['JWTIdentityProvider', 'LocalBlobStore']
