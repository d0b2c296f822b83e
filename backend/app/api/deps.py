"""
Shared route dependencies: collaborators, authentication and role gates.
"""

from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationError, ValidationError
from app.core.permissions import Role, authorize
from app.db.session import get_db
from app.services.interfaces.blob_store import BlobStore
from app.services.interfaces.identity import Identity, IdentityProvider
from app.services.provider_factory import build_identity_provider, get_blob_store_instance


async def get_identity_provider(db: AsyncSession = Depends(get_db)) -> IdentityProvider:
    return build_identity_provider(db)


def get_blob_store() -> BlobStore:
    return get_blob_store_instance()


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Access token required")
    return token.strip()


async def get_current_identity(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    identity = await provider.verify_token(_bearer_token(request))
    if identity is None:
        raise AuthenticationError("Invalid or expired token")
    return identity


def require_roles(*roles: Role):
    """Route dependency: authenticate, then authorize against an explicit role set."""
    allowed = frozenset(roles)

    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        authorize(identity.role, allowed)
        return identity

    return dependency


def parse_json_form(model: type[BaseModel], raw: str) -> BaseModel:
    """Validate a JSON-encoded multipart form field against a schema."""
    try:
        return model.model_validate_json(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        loc = [part for part in first.get("loc", ()) if isinstance(part, str)]
        raise ValidationError(first.get("msg", "Invalid request data"), field=loc[-1] if loc else "payload")
