"""
EventRegistration model: one user's enrollment in one event.

Key design decisions:
- Partial unique index on (user_id, event_id) over non-cancelled rows: at most
  one active registration per pair, while re-registering after a cancellation
  stays possible.
- `registration_number` is unique and comes from the registration sequence,
  never from a COUNT query.
- Cancellation is a status transition, not a delete.
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey,
    Index, UniqueConstraint, CheckConstraint, func, text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PaymentMethod(str, enum.Enum):
    MOBILE = "mobile"
    BANK = "bank"
    CASH = "cash"
    GROUP_PAYMENT = "group_payment"
    ORG_PAID = "org_paid"


class DelegateType(str, enum.Enum):
    PRIVATE = "private"
    PUBLIC = "public"
    INTERNATIONAL = "international"


def _in_list(column: str, values: type[enum.Enum]) -> str:
    return f"{column} IN ({', '.join(repr(v.value) for v in values)})"


class EventRegistration(Base, TimestampMixin):
    __tablename__ = "event_registrations"

    id = Column(Integer, primary_key=True, index=True)
    registration_number = Column(String(16), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)

    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(20), nullable=True)
    has_paid = Column(Boolean, nullable=False, default=False)
    payment_evidence = Column(String(500), nullable=True)

    delegate_type = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)
    organization = Column(String(255), nullable=True)
    position = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    group_size = Column(Integer, nullable=True)
    group_payment_amount = Column(Numeric(10, 2), nullable=True)
    group_payment_currency = Column(String(8), nullable=True)
    organization_reference = Column(String(255), nullable=True)

    # Fee quoted at registration time (see app.services.pricing)
    currency = Column(String(8), nullable=True)
    price_paid = Column(Numeric(10, 2), nullable=True)
    accommodation_package = Column(Boolean, nullable=False, default=False)
    victoria_falls_package = Column(Boolean, nullable=False, default=False)
    boat_cruise_package = Column(Boolean, nullable=False, default=False)
    dinner_gala_attendance = Column(Boolean, nullable=False, default=False)

    registered_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="registrations", lazy="raise")
    event = relationship("Event", back_populates="registrations", lazy="raise")

    __table_args__ = (
        UniqueConstraint("registration_number", name="uq_registration_number"),
        Index(
            "uq_active_registration_user_event",
            "user_id",
            "event_id",
            unique=True,
            postgresql_where=text("payment_status <> 'cancelled'"),
            sqlite_where=text("payment_status <> 'cancelled'"),
        ),
        CheckConstraint(_in_list("payment_status", PaymentStatus), name="check_registration_payment_status"),
        CheckConstraint(
            f"payment_method IS NULL OR {_in_list('payment_method', PaymentMethod)}",
            name="check_registration_payment_method",
        ),
        CheckConstraint(
            f"delegate_type IS NULL OR {_in_list('delegate_type', DelegateType)}",
            name="check_registration_delegate_type",
        ),
        CheckConstraint("group_size IS NULL OR group_size >= 1", name="check_registration_group_size"),
        CheckConstraint("price_paid IS NULL OR price_paid >= 0", name="check_registration_price_paid"),
    )

    @property
    def is_active(self) -> bool:
        return self.payment_status != PaymentStatus.CANCELLED.value

    def __repr__(self) -> str:
        return (
            f"<EventRegistration(id={self.id}, number={self.registration_number}, "
            f"user={self.user_id}, event={self.event_id}, status={self.payment_status})>"
        )
