"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    start_date: datetime
    end_date: datetime
    location: Optional[str] = Field(None, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    max_attendees: Optional[int] = Field(None, gt=0, le=1000000)
    image_url: Optional[str] = Field(None, max_length=1000)
    tags: list[str] = Field(default_factory=list)
    featured: bool = False

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    max_attendees: Optional[int] = Field(None, gt=0, le=1000000)
    image_url: Optional[str] = Field(None, max_length=1000)
    tags: Optional[list[str]] = None
    featured: Optional[bool] = None


class EventResponse(BaseModel):
    id: int
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    location: Optional[str]
    price: Decimal
    max_attendees: Optional[int]
    current_attendees: int
    available_spots: Optional[int]
    is_full: bool
    image_url: Optional[str]
    tags: list[str]
    featured: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class EventStats(BaseModel):
    total_registrations: int
    active_registrations: int
    paid_registrations: int
    pending_payments: int
    revenue: Decimal


class AdminEventResponse(EventResponse):
    stats: EventStats
