"""
Pydantic schemas for sponsorship and exhibition applications.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.partner import ApplicationStatus, BoothSize, PartnerPaymentStatus, SponsorshipLevel
from app.schemas.event import EventResponse


class PartnerApplicationBase(BaseModel):
    event_id: int
    company_name: str = Field(..., min_length=1, max_length=255)
    contact_person: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone_number: str = Field(..., min_length=1, max_length=32)
    website: Optional[str] = Field(None, max_length=500)
    company_address: Optional[str] = None
    currency: str = Field("USD", min_length=3, max_length=8)
    notes: Optional[str] = Field(None, max_length=2000)


class SponsorshipCreate(PartnerApplicationBase):
    sponsorship_level: SponsorshipLevel
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    special_requirements: Optional[str] = None
    marketing_materials: Optional[str] = None


class ExhibitionCreate(PartnerApplicationBase):
    booth_size: BoothSize = BoothSize.STANDARD
    amount: Decimal = Field(Decimal("7000"), ge=0, max_digits=12, decimal_places=2)
    products_services: Optional[str] = None
    booth_requirements: Optional[str] = None
    electrical_requirements: Optional[str] = None
    internet_requirements: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    payment_status: Optional[PartnerPaymentStatus] = None


class PartnerApplicationResponse(BaseModel):
    id: int
    event_id: int
    company_name: str
    contact_person: str
    email: str
    phone_number: str
    website: Optional[str]
    company_address: Optional[str]
    amount: Decimal
    currency: str
    status: str
    payment_status: str
    notes: Optional[str]
    submitted_at: datetime

    model_config = {"from_attributes": True}


class SponsorshipResponse(PartnerApplicationResponse):
    sponsorship_level: str
    special_requirements: Optional[str]
    marketing_materials: Optional[str]


class ExhibitionResponse(PartnerApplicationResponse):
    booth_size: str
    products_services: Optional[str]
    booth_requirements: Optional[str]
    electrical_requirements: Optional[str]
    internet_requirements: Optional[str]


class SponsorshipWithEvent(SponsorshipResponse):
    event: Optional[EventResponse] = None


class ExhibitionWithEvent(ExhibitionResponse):
    event: Optional[EventResponse] = None


class PartnerSummary(BaseModel):
    """Public view of an approved partner; contact details are withheld."""
    id: int
    event_id: int
    company_name: str
    website: Optional[str]

    model_config = {"from_attributes": True}


class SponsorSummary(PartnerSummary):
    sponsorship_level: str


class ExhibitorSummary(PartnerSummary):
    booth_size: str
    products_services: Optional[str]


class PartnerShowcase(BaseModel):
    sponsors: list[SponsorSummary]
    exhibitors: list[ExhibitorSummary]
