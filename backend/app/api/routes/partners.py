"""
Public sponsorship and exhibition applications, and the approved-partner showcase.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.partner import (
    ExhibitionCreate, ExhibitionResponse, ExhibitorSummary, PartnerShowcase,
    SponsorSummary, SponsorshipCreate, SponsorshipResponse,
)
from app.services import partner_service

router = APIRouter(tags=["Partners"])


@router.post("/sponsorships", response_model=SponsorshipResponse, status_code=status.HTTP_201_CREATED)
async def submit_sponsorship_endpoint(
    data: SponsorshipCreate,
    db: AsyncSession = Depends(get_db),
):
    """Apply to sponsor an event. Applications start pending review."""
    return await partner_service.submit_sponsorship(db, data)


@router.post("/exhibitions", response_model=ExhibitionResponse, status_code=status.HTTP_201_CREATED)
async def submit_exhibition_endpoint(
    data: ExhibitionCreate,
    db: AsyncSession = Depends(get_db),
):
    return await partner_service.submit_exhibition(db, data)


@router.get("/partners", response_model=PartnerShowcase)
async def showcase_endpoint(
    event_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Approved sponsors and exhibitors."""
    sponsors, exhibitors = await partner_service.approved_showcase(db, event_id)
    return PartnerShowcase(
        sponsors=[SponsorSummary.model_validate(s) for s in sponsors],
        exhibitors=[ExhibitorSummary.model_validate(e) for e in exhibitors],
    )
