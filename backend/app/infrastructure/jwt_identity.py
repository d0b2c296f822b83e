"""
Identity provider backed by locally issued JWTs and the users table.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from app.core.logging import get_logger
from app.core.permissions import Role
from app.core.security import decode_access_token, hash_password, verify_password
from app.models.user import User
from app.services.interfaces.identity import Identity, IdentityProvider

logger = get_logger(__name__)


class JWTIdentityProvider(IdentityProvider):
    """
    Tokens carry only the subject (user id). The email and role claim are
    looked up on every verification, so a role change or deactivation takes
    effect on the next request rather than when the token expires.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def verify_token(self, token: str) -> Optional[Identity]:
        claims = decode_access_token(token)
        if not claims or "sub" not in claims:
            return None
        try:
            user_id = int(claims["sub"])
        except (TypeError, ValueError):
            return None

        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
        except SQLAlchemyError as e:
            logger.error("identity_lookup_failed", user_id=user_id, error=str(e))
            raise UpstreamError("Identity provider unavailable")
        user = result.scalar_one_or_none()
        if not user or not user.is_active:
            return None
        return Identity(id=user.id, email=user.email, role=user.role or Role.ORDINARY.value)

    async def create_account(self, email: str, password: str, metadata: dict) -> int:
        user = User(
            email=email,
            hashed_password=hash_password(password),
            first_name=metadata.get("first_name", ""),
            last_name=metadata.get("last_name", ""),
            phone_number=metadata.get("phone_number"),
            role=metadata.get("role") or Role.ORDINARY.value,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError("Email already registered", field="email")
        logger.info("account_created", user_id=user.id, role=user.role)
        return user.id

    async def update_role_claim(self, account_id: int, role: str) -> None:
        result = await self.db.execute(
            update(User).where(User.id == account_id).values(role=role)
        )
        if result.rowcount == 0:
            raise NotFoundError("User not found")

    async def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        user = await self.db.get(User, account_id)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect", field="current_password")
        user.hashed_password = hash_password(new_password)
        await self.db.flush()
