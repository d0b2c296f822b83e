"""
User administration: listing with registration stats, role changes and profile edits.
"""

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.permissions import Role
from app.models.registration import EventRegistration, PaymentStatus
from app.models.user import User
from app.schemas.user import ProfileUpdate
from app.services.interfaces.identity import Identity, IdentityProvider

logger = get_logger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", field="user_id")
    return user


async def list_users_with_stats(db: AsyncSession) -> tuple[list[dict], dict]:
    """
    All users, newest first, each with registration counts, plus the
    distribution of roles across the user base.
    """
    active = EventRegistration.payment_status != PaymentStatus.CANCELLED.value
    counts = (
        select(
            EventRegistration.user_id.label("user_id"),
            func.count().label("total"),
            func.sum(case((active, 1), else_=0)).label("active"),
            func.sum(case((active & EventRegistration.has_paid, 1), else_=0)).label("paid"),
        )
        .group_by(EventRegistration.user_id)
        .subquery()
    )
    rows = (await db.execute(
        select(User, counts.c.total, counts.c.active, counts.c.paid)
        .outerjoin(counts, counts.c.user_id == User.id)
        .order_by(User.created_at.desc(), User.id.desc())
    )).all()

    users = []
    distribution = {role.value: 0 for role in Role}
    for user, total, active_count, paid in rows:
        distribution[user.role] = distribution.get(user.role, 0) + 1
        users.append({
            "user": user,
            "total_registrations": int(total or 0),
            "active_registrations": int(active_count or 0),
            "paid_registrations": int(paid or 0),
        })

    return users, {"total_users": len(users), "role_distribution": distribution}


async def update_role(
    db: AsyncSession,
    provider: IdentityProvider,
    actor: Identity,
    user_id: int,
    role: Role,
) -> User:
    """Change a user's role claim. Admins cannot change their own role."""
    if actor.id == user_id:
        raise AuthorizationError("Cannot change your own role", field="role")

    user = await get_user(db, user_id)
    previous = user.role
    await provider.update_role_claim(user_id, role.value)
    await db.refresh(user)

    logger.info("user_role_updated", user_id=user_id, from_role=previous, to_role=role.value, by_user=actor.id)
    return user


async def update_profile(db: AsyncSession, actor: Identity, user_id: int, updates: ProfileUpdate) -> User:
    """Apply a partial profile update. Names may be changed but not cleared."""
    changes = updates.model_dump(exclude_unset=True)
    for key in ("first_name", "last_name"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be null", field=key)

    user = await get_user(db, user_id)
    for key, value in changes.items():
        setattr(user, key, value.strip() if isinstance(value, str) else value)
    await db.flush()
    await db.refresh(user)

    logger.info("user_profile_updated", user_id=user_id, fields=sorted(changes), by_user=actor.id)
    return user
