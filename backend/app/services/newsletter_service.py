"""
Newsletter subscriptions.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.models.newsletter import NewsletterSubscription

logger = get_logger(__name__)

RECENT_WINDOW = timedelta(days=30)


async def subscribe(db: AsyncSession, email: str, name: Optional[str] = None) -> tuple[NewsletterSubscription, bool]:
    """Returns (subscription, created). Subscribing twice is not an error."""
    email = email.lower()
    result = await db.execute(select(NewsletterSubscription).where(NewsletterSubscription.email == email))
    existing = result.scalar_one_or_none()
    if existing:
        return existing, False

    subscription = NewsletterSubscription(email=email, name=name)
    try:
        async with db.begin_nested():
            db.add(subscription)
    except IntegrityError:
        # Lost a race with an identical subscribe
        result = await db.execute(select(NewsletterSubscription).where(NewsletterSubscription.email == email))
        return result.scalar_one(), False

    await db.refresh(subscription)
    logger.info("newsletter_subscribed", subscription_id=subscription.id)
    return subscription, True


async def list_subscriptions(db: AsyncSession) -> tuple[list[NewsletterSubscription], int, int]:
    """Returns (subscriptions newest first, total, subscribed in the last 30 days)."""
    result = await db.execute(
        select(NewsletterSubscription).order_by(
            NewsletterSubscription.subscribed_at.desc(), NewsletterSubscription.id.desc()
        )
    )
    subscriptions = list(result.scalars().all())

    since = datetime.now(timezone.utc) - RECENT_WINDOW
    recent = (await db.execute(
        select(func.count()).select_from(NewsletterSubscription).where(NewsletterSubscription.subscribed_at >= since)
    )).scalar() or 0
    return subscriptions, len(subscriptions), recent
