"""
Event model with attendee capacity tracking.

Key design decisions:
- `current_attendees` is a denormalized counter of non-cancelled registrations.
  It only ever moves through single conditional UPDATE statements (see
  registration_service), never read-modify-write from the application.
- `max_attendees` is optional; NULL means uncapped.
- Index on `start_date` for upcoming-event listings.
"""

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Numeric, Boolean, JSON, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    max_attendees = Column(Integer, nullable=True)
    current_attendees = Column(Integer, nullable=False, default=0)
    image_url = Column(String(1000), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    featured = Column(Boolean, nullable=False, default=False)

    registrations = relationship(
        "EventRegistration",
        back_populates="event",
        lazy="raise",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("current_attendees >= 0", name="check_current_attendees_non_negative"),
        CheckConstraint(
            "max_attendees IS NULL OR current_attendees <= max_attendees",
            name="check_attendees_within_capacity",
        ),
        CheckConstraint("max_attendees IS NULL OR max_attendees > 0", name="check_max_attendees_positive"),
        CheckConstraint("end_date >= start_date", name="check_event_dates_ordered"),
        Index("ix_events_start_date", "start_date"),
    )

    @property
    def available_spots(self):
        if self.max_attendees is None:
            return None
        return max(0, self.max_attendees - (self.current_attendees or 0))

    @property
    def is_full(self) -> bool:
        return self.max_attendees is not None and (self.current_attendees or 0) >= self.max_attendees

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, attendees={self.current_attendees}/{self.max_attendees})>"
