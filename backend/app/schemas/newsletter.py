from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class NewsletterSubscribe(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)


class NewsletterSubscriptionResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    subscribed_at: datetime

    model_config = {"from_attributes": True}


class NewsletterSubscribeResult(BaseModel):
    message: str
    subscription: NewsletterSubscriptionResponse


class NewsletterListResponse(BaseModel):
    subscriptions: list[NewsletterSubscriptionResponse]
    total: int
    recent_subscriptions: int
