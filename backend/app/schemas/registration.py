"""
Pydantic schemas for event registration requests and responses.

Request fields that carry step-validation rules (country, organization,
payment_method, ...) are deliberately loose here: the registration workflow
validates them itself so every failure is reported against a single field.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from app.models.registration import PaymentStatus
from app.schemas.event import EventResponse


class RegistrationCreate(BaseModel):
    event_id: int
    user_id: int
    delegate_type: Optional[str] = None
    country: Optional[str] = None
    organization: Optional[str] = None
    position: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)
    payment_method: Optional[str] = None

    # Personal info from the first form step; profile values fill any gaps
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None

    # Group / organization payment details
    group_size: Optional[int] = None
    group_payment_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    group_payment_currency: Optional[str] = Field(None, max_length=8)
    organization_reference: Optional[str] = Field(None, max_length=255)

    # Add-on packages, priced by delegate type
    accommodation_package: bool = False
    victoria_falls_package: bool = False
    boat_cruise_package: bool = False
    dinner_gala_attendance: bool = False


class AdminRegistrationCreate(RegistrationCreate):
    # Trusted admin override of payment state
    payment_status: PaymentStatus = PaymentStatus.PENDING
    has_paid: Optional[bool] = None
    # Negotiated amount replacing the quoted fee
    price_paid: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class StepPayload(BaseModel):
    """Any subset of registration fields, validated against one form step."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    country: Optional[str] = None
    organization: Optional[str] = None
    position: Optional[str] = None
    payment_method: Optional[str] = None
    group_size: Optional[int] = None
    organization_reference: Optional[str] = None
    has_evidence: bool = False


class StepValidationResult(BaseModel):
    step: str
    valid: bool = True


class RegistrationResponse(BaseModel):
    id: int
    registration_number: str
    user_id: int
    event_id: int
    payment_status: str
    payment_method: Optional[str]
    has_paid: bool
    payment_evidence: Optional[str]
    delegate_type: Optional[str]
    country: Optional[str]
    organization: Optional[str]
    position: Optional[str]
    notes: Optional[str]
    group_size: Optional[int]
    group_payment_amount: Optional[Decimal]
    group_payment_currency: Optional[str]
    organization_reference: Optional[str]
    currency: Optional[str]
    price_paid: Optional[Decimal]
    accommodation_package: bool
    victoria_falls_package: bool
    boat_cruise_package: bool
    dinner_gala_attendance: bool
    registered_at: datetime

    model_config = {"from_attributes": True}


class RegistrationCreatedResponse(RegistrationResponse):
    evidence_deferred: bool = False


class RegistrationWithEvent(RegistrationResponse):
    event: Optional[EventResponse] = None


class RegistrationCancelResponse(BaseModel):
    message: str
    registration: RegistrationResponse


class PaymentStatusUpdate(BaseModel):
    payment_status: str


class EvidenceUpdateResponse(BaseModel):
    message: str
    evidence_path: str
    original_name: Optional[str]


class RegistrationStats(BaseModel):
    total: int
    pending: int
    paid: int
    completed: int
    cancelled: int
    failed: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AdminRegistrationListResponse(BaseModel):
    registrations: list[RegistrationResponse]
    stats: RegistrationStats
    pagination: Pagination


class QuoteItem(BaseModel):
    name: str
    amount: Decimal


class QuoteResponse(BaseModel):
    event_id: int
    delegate_type: Optional[str]
    currency: str
    base_price: Decimal
    items: list[QuoteItem]
    total: Decimal
