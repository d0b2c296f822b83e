"""
Authentication service handling account signup, login and password changes.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import PasswordChange, UserCreate, UserLogin
from app.core.errors import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from app.core.permissions import Role
from app.core.security import verify_password, create_access_token
from app.core.logging import get_logger
from app.services.interfaces.identity import Identity, IdentityProvider

logger = get_logger(__name__)


async def register_user(
    db: AsyncSession,
    provider: IdentityProvider,
    user_data: UserCreate,
    role: Role = Role.ORDINARY,
) -> User:
    """
    Create an account through the identity provider.
    Raises 409 if the email already exists.
    """
    email = user_data.email.lower()
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        logger.warning("signup_failed", reason="email_exists", email=email)
        raise ConflictError("Email already registered", field="email")

    user_id = await provider.create_account(
        email,
        user_data.password,
        {
            "first_name": user_data.first_name,
            "last_name": user_data.last_name,
            "phone_number": user_data.phone_number,
            "role": role.value,
        },
    )
    user = await db.get(User, user_id)
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Authenticate user and return JWT access token.
    Raises 401 if credentials are invalid.
    """
    result = await db.execute(select(User).where(User.email == login_data.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthorizationError("Account is deactivated")

    token = create_access_token(data={"sub": str(user.id)})
    logger.info("user_logged_in", user_id=user.id)
    return token


async def change_password(provider: IdentityProvider, identity: Identity, data: PasswordChange) -> None:
    """Change the caller's own password. The new password must differ from the current one."""
    if data.new_password == data.current_password:
        raise ValidationError("New password must differ from the current password", field="new_password")
    await provider.change_password(identity.id, data.current_password, data.new_password)
    logger.info("password_changed", user_id=identity.id)
