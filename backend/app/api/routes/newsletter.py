"""
Public newsletter subscription.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.newsletter import (
    NewsletterSubscribe, NewsletterSubscribeResult, NewsletterSubscriptionResponse,
)
from app.services.newsletter_service import subscribe

router = APIRouter(prefix="/newsletter", tags=["Newsletter"])


@router.post("/subscribe", response_model=NewsletterSubscribeResult, status_code=status.HTTP_201_CREATED)
async def subscribe_endpoint(
    data: NewsletterSubscribe,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Subscribe an email address. Already-subscribed addresses return 200."""
    subscription, created = await subscribe(db, data.email, data.name)
    body = NewsletterSubscriptionResponse.model_validate(subscription)
    if not created:
        response.status_code = status.HTTP_200_OK
        return NewsletterSubscribeResult(message="Already subscribed", subscription=body)
    return NewsletterSubscribeResult(message="Subscribed successfully", subscription=body)
