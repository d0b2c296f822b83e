"""
Sponsorship and exhibition applications submitted against an event.

Both are reviewed by staff: `status` tracks the review outcome and
`payment_status` the partner's payment, independently of each other.
Only approved applications appear in the public partner showcase.
"""

import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class PartnerPaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class SponsorshipLevel(str, enum.Enum):
    PLATINUM = "platinum"
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


class BoothSize(str, enum.Enum):
    STANDARD = "standard"
    PREMIUM = "premium"
    CUSTOM = "custom"


def _in_list(column: str, values: type[enum.Enum]) -> str:
    return f"{column} IN ({', '.join(repr(v.value) for v in values)})"


class PartnerApplication(TimestampMixin):
    """Columns shared by sponsorships and exhibitions."""

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String(255), nullable=False)
    contact_person = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(32), nullable=False)
    website = Column(String(500), nullable=True)
    company_address = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(8), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PartnerPaymentStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Sponsorship(Base, PartnerApplication):
    __tablename__ = "sponsorships"

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    sponsorship_level = Column(String(20), nullable=False)
    special_requirements = Column(Text, nullable=True)
    marketing_materials = Column(Text, nullable=True)

    event = relationship("Event", lazy="raise")

    __table_args__ = (
        CheckConstraint(_in_list("sponsorship_level", SponsorshipLevel), name="check_sponsorship_level"),
        CheckConstraint(_in_list("status", ApplicationStatus), name="check_sponsorship_status"),
        CheckConstraint(_in_list("payment_status", PartnerPaymentStatus), name="check_sponsorship_payment_status"),
        CheckConstraint("amount >= 0", name="check_sponsorship_amount"),
    )

    def __repr__(self) -> str:
        return f"<Sponsorship(id={self.id}, company={self.company_name}, level={self.sponsorship_level})>"


class Exhibition(Base, PartnerApplication):
    __tablename__ = "exhibitions"

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    booth_size = Column(String(20), nullable=False, default=BoothSize.STANDARD.value)
    products_services = Column(Text, nullable=True)
    booth_requirements = Column(Text, nullable=True)
    electrical_requirements = Column(Text, nullable=True)
    internet_requirements = Column(Text, nullable=True)

    event = relationship("Event", lazy="raise")

    __table_args__ = (
        CheckConstraint(_in_list("booth_size", BoothSize), name="check_exhibition_booth_size"),
        CheckConstraint(_in_list("status", ApplicationStatus), name="check_exhibition_status"),
        CheckConstraint(_in_list("payment_status", PartnerPaymentStatus), name="check_exhibition_payment_status"),
        CheckConstraint("amount >= 0", name="check_exhibition_amount"),
    )

    def __repr__(self) -> str:
        return f"<Exhibition(id={self.id}, company={self.company_name}, booth={self.booth_size})>"
