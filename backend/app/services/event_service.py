"""
Event service handling CRUD operations and per-event registration stats.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.event import Event
from app.models.partner import Exhibition, Sponsorship
from app.models.registration import EventRegistration, PaymentStatus
from app.schemas.event import EventCreate, EventUpdate
from app.services.interfaces.blob_store import BlobStore, BlobStoreError

logger = get_logger(__name__)

# Columns an update may clear with an explicit null
CLEARABLE_FIELDS = frozenset({"max_attendees", "location", "image_url"})


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create a new event with no attendees."""
    event = Event(
        title=event_data.title,
        description=event_data.description,
        start_date=event_data.start_date,
        end_date=event_data.end_date,
        location=event_data.location,
        price=event_data.price,
        max_attendees=event_data.max_attendees,
        current_attendees=0,
        image_url=event_data.image_url,
        tags=list(event_data.tags),
        featured=event_data.featured,
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, title=event.title, max_attendees=event.max_attendees)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError(f"Event {event_id} not found", field="event_id")
    return event


async def update_event(db: AsyncSession, event_id: int, updates: EventUpdate) -> Event:
    event = await get_event(db, event_id)
    changes = updates.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if value is None and key not in CLEARABLE_FIELDS:
            raise ValidationError(f"{key} cannot be null", field=key)

    start = changes.get("start_date", event.start_date)
    end = changes.get("end_date", event.end_date)
    if start is not None and end is not None and _as_utc(end) < _as_utc(start):
        raise ValidationError("end_date must not be before start_date", field="end_date")

    if "max_attendees" in changes and changes["max_attendees"] is not None:
        if changes["max_attendees"] < event.current_attendees:
            raise ConflictError(
                f"Capacity cannot be lowered below the {event.current_attendees} current attendees",
                field="max_attendees",
            )

    for key, value in changes.items():
        setattr(event, key, value)
    await db.flush()
    await db.refresh(event)

    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return event


async def delete_event(db: AsyncSession, event_id: int, blob_store: BlobStore) -> None:
    """
    Delete an event. Refused while any non-cancelled registration exists;
    the cancelled ones and any partner applications are removed with it.
    """
    event = await get_event(db, event_id)

    active = (await db.execute(
        select(func.count()).select_from(EventRegistration).where(
            EventRegistration.event_id == event_id,
            EventRegistration.payment_status != PaymentStatus.CANCELLED.value,
        )
    )).scalar()
    if active:
        raise ConflictError(f"Cannot delete event with {active} active registrations", field="event_id")

    evidence_paths = (await db.execute(
        select(EventRegistration.payment_evidence).where(
            EventRegistration.event_id == event_id,
            EventRegistration.payment_evidence.is_not(None),
        )
    )).scalars().all()

    await db.execute(delete(EventRegistration).where(EventRegistration.event_id == event_id))
    await db.execute(delete(Sponsorship).where(Sponsorship.event_id == event_id))
    await db.execute(delete(Exhibition).where(Exhibition.event_id == event_id))
    await db.delete(event)
    await db.flush()
    await db.commit()

    for path in evidence_paths:
        try:
            await blob_store.delete(path)
        except BlobStoreError as e:
            logger.warning("evidence_cleanup_failed", event_id=event_id, path=path, error=str(e))

    logger.info("event_deleted", event_id=event_id, evidence_removed=len(evidence_paths))


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = False,
    featured: Optional[bool] = None,
    q: Optional[str] = None,
) -> tuple[list[Event], int]:
    """
    List events ordered by start date, with pagination.
    Uses the ix_events_start_date index for date filtering and ordering.
    """
    query = select(Event)

    if upcoming_only:
        query = query.where(Event.start_date >= datetime.now(timezone.utc))
    if featured is not None:
        query = query.where(Event.featured == featured)
    if q:
        term = f"%{q.lower()}%"
        query = query.where(or_(
            func.lower(Event.title).like(term),
            func.lower(Event.description).like(term),
            func.lower(Event.location).like(term),
        ))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.start_date.asc(), Event.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


async def get_event_stats(db: AsyncSession, events: list[Event]) -> dict[int, dict]:
    """Registration counts and paid revenue per event, in one grouped query."""
    if not events:
        return {}

    active = EventRegistration.payment_status != PaymentStatus.CANCELLED.value
    rows = (await db.execute(
        select(
            EventRegistration.event_id,
            func.count().label("total"),
            func.sum(case((active, 1), else_=0)).label("active"),
            func.sum(case((active & EventRegistration.has_paid, 1), else_=0)).label("paid"),
            func.sum(case((active & ~EventRegistration.has_paid, 1), else_=0)).label("pending"),
        )
        .where(EventRegistration.event_id.in_([e.id for e in events]))
        .group_by(EventRegistration.event_id)
    )).all()
    by_event = {row.event_id: row for row in rows}

    stats = {}
    for event in events:
        row = by_event.get(event.id)
        paid = int(row.paid or 0) if row else 0
        stats[event.id] = {
            "total_registrations": int(row.total) if row else 0,
            "active_registrations": int(row.active or 0) if row else 0,
            "paid_registrations": paid,
            "pending_payments": int(row.pending or 0) if row else 0,
            "revenue": Decimal(str(event.price or 0)) * paid,
        }
    return stats
