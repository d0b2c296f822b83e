"""
Sponsorship and exhibition applications: public submission, staff review and
the public showcase of approved partners.
"""

from typing import Optional, Union

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.models.partner import (
    ApplicationStatus, BoothSize, Exhibition, PartnerPaymentStatus, Sponsorship, SponsorshipLevel,
)
from app.schemas.partner import ExhibitionCreate, SponsorshipCreate
from app.services.event_service import get_event
from app.services.interfaces.identity import Identity

logger = get_logger(__name__)

Application = Union[Sponsorship, Exhibition]

# Showcase ordering: most prominent first
LEVEL_RANK = {level.value: rank for rank, level in enumerate(SponsorshipLevel)}
BOOTH_RANK = {size.value: rank for rank, size in enumerate((BoothSize.PREMIUM, BoothSize.CUSTOM, BoothSize.STANDARD))}


async def _submit(db: AsyncSession, model: type, data) -> Application:
    await get_event(db, data.event_id)
    application = model(
        **data.model_dump(mode="json", exclude={"amount"}),
        amount=data.amount,
        status=ApplicationStatus.PENDING.value,
        payment_status=PartnerPaymentStatus.PENDING.value,
    )
    db.add(application)
    await db.flush()
    await db.refresh(application)

    logger.info(
        "partner_application_submitted",
        kind=model.__tablename__,
        application_id=application.id,
        event_id=application.event_id,
        company=application.company_name,
    )
    return application


async def submit_sponsorship(db: AsyncSession, data: SponsorshipCreate) -> Sponsorship:
    return await _submit(db, Sponsorship, data)


async def submit_exhibition(db: AsyncSession, data: ExhibitionCreate) -> Exhibition:
    return await _submit(db, Exhibition, data)


async def list_applications(db: AsyncSession, model: type, event_id: Optional[int] = None) -> list[Application]:
    """All applications of one kind, newest first, with their events loaded."""
    query = select(model).options(selectinload(model.event))
    if event_id is not None:
        query = query.where(model.event_id == event_id)
    result = await db.execute(query.order_by(model.submitted_at.desc(), model.id.desc()))
    return list(result.scalars().all())


async def update_status(
    db: AsyncSession,
    model: type,
    application_id: int,
    status: ApplicationStatus,
    payment_status: Optional[PartnerPaymentStatus],
    actor: Identity,
) -> Application:
    """Record a review decision. The payment status changes only when given."""
    application = await db.get(model, application_id)
    if not application:
        raise NotFoundError(f"{model.__name__} not found", field="application_id")

    previous = application.status
    application.status = status.value
    if payment_status is not None:
        application.payment_status = payment_status.value
    await db.flush()
    await db.refresh(application)

    logger.info(
        "partner_application_reviewed",
        kind=model.__tablename__,
        application_id=application_id,
        from_status=previous,
        to_status=application.status,
        payment_status=application.payment_status,
        by_user=actor.id,
    )
    return application


async def approved_showcase(
    db: AsyncSession, event_id: Optional[int] = None,
) -> tuple[list[Sponsorship], list[Exhibition]]:
    """Approved sponsors by level and exhibitors by booth size, then by company name."""
    sponsors_query = select(Sponsorship).where(Sponsorship.status == ApplicationStatus.APPROVED.value)
    exhibitors_query = select(Exhibition).where(Exhibition.status == ApplicationStatus.APPROVED.value)
    if event_id is not None:
        sponsors_query = sponsors_query.where(Sponsorship.event_id == event_id)
        exhibitors_query = exhibitors_query.where(Exhibition.event_id == event_id)

    sponsors = (await db.execute(sponsors_query.order_by(
        case(LEVEL_RANK, value=Sponsorship.sponsorship_level, else_=len(LEVEL_RANK)),
        Sponsorship.company_name,
    ))).scalars().all()
    exhibitors = (await db.execute(exhibitors_query.order_by(
        case(BOOTH_RANK, value=Exhibition.booth_size, else_=len(BOOTH_RANK)),
        Exhibition.company_name,
    ))).scalars().all()
    return list(sponsors), list(exhibitors)
