"""
Authentication endpoints: signup, login, the current user and password changes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_identity, get_identity_provider
from app.db.session import get_db
from app.schemas.admin import MessageResponse
from app.schemas.user import PasswordChange, UserCreate, UserResponse, UserLogin, Token
from app.services.auth_service import register_user, authenticate_user, change_password
from app.services.interfaces.identity import Identity, IdentityProvider
from app.services.user_service import get_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Register a new ordinary user account."""
    return await register_user(db, provider, user_data)


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token = await authenticate_user(db, login_data)
    return Token(access_token=token)


@router.get("/me", response_model=UserResponse)
async def me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await get_user(db, identity.id)


@router.patch("/change-password", response_model=MessageResponse)
async def change_password_endpoint(
    data: PasswordChange,
    identity: Identity = Depends(get_current_identity),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Change the current user's password."""
    await change_password(provider, identity, data)
    return MessageResponse(message="Password changed successfully")
