"""
Public event endpoints with Redis caching on list operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.event import EventResponse, EventListResponse
from app.schemas.registration import QuoteItem, QuoteResponse
from app.services import pricing
from app.services.event_service import get_event, list_events
from app.services.step_validation import parse_delegate_type
from app.services.cache_service import get_cached_events, set_cached_events, make_event_list_key
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(False),
    featured: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination.
    Results are cached in Redis; the cache is invalidated whenever an event
    or its attendee count changes.
    """
    key = make_event_list_key(page=page, page_size=page_size, upcoming_only=upcoming_only, featured=featured, q=q)
    cached = await get_cached_events(key)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, page, page_size, upcoming_only, featured, q)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(key, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID. Not cached (needs real-time attendee counts)."""
    return await get_event(db, event_id)


@router.get("/{event_id}/quote", response_model=QuoteResponse)
async def quote_endpoint(
    event_id: int,
    delegate_type: Optional[str] = Query(None),
    accommodation_package: bool = Query(False),
    victoria_falls_package: bool = Query(False),
    boat_cruise_package: bool = Query(False),
    dinner_gala_attendance: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """Price a registration before submitting it."""
    event = await get_event(db, event_id)
    packages = pricing.PackageSelection(
        accommodation=accommodation_package,
        victoria_falls=victoria_falls_package,
        boat_cruise=boat_cruise_package,
        dinner_gala=dinner_gala_attendance,
    )
    fee = pricing.quote(parse_delegate_type(delegate_type), packages, event.price)
    return QuoteResponse(
        event_id=event.id,
        delegate_type=delegate_type,
        currency=fee.currency,
        base_price=fee.base,
        items=[QuoteItem(name=name, amount=amount) for name, amount in fee.items],
        total=fee.total,
    )
