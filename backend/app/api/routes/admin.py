"""
Admin endpoints. Every route declares the role set allowed to call it.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_blob_store, get_identity_provider, parse_json_form, require_roles
from app.api.routes.registrations import track_registration
from app.core.config import get_settings
from app.core.permissions import (
    ADMIN_ROLES, EVENT_ADMIN_ROLES, FINANCE_ROLES, PARTNER_ADMIN_ROLES, REGISTRAR_ROLES, USER_ADMIN_ROLES,
)
from app.db.session import get_db
from app.models.partner import Exhibition, Sponsorship
from app.models.registration import PaymentStatus
from app.schemas.admin import (
    AdminUserListResponse, MessageResponse, RoleUpdateResponse, UserListStats, UserWithStats,
)
from app.schemas.event import AdminEventResponse, EventCreate, EventResponse, EventStats, EventUpdate
from app.schemas.partner import (
    ApplicationStatusUpdate, ExhibitionResponse, ExhibitionWithEvent, SponsorshipResponse, SponsorshipWithEvent,
)
from app.schemas.newsletter import NewsletterListResponse, NewsletterSubscriptionResponse
from app.schemas.registration import (
    AdminRegistrationCreate, AdminRegistrationListResponse, EvidenceUpdateResponse, Pagination,
    PaymentStatusUpdate, RegistrationCreatedResponse, RegistrationResponse, RegistrationStats,
)
from app.schemas.user import AdminUserCreate, RoleUpdate, UserResponse
from app.services import event_service, partner_service, registration_service, user_service
from app.services.auth_service import register_user
from app.services.cache_service import invalidate_event_cache
from app.services.evidence_service import download_evidence, read_evidence_upload, replace_evidence
from app.services.interfaces.blob_store import BlobStore
from app.services.interfaces.identity import Identity, IdentityProvider
from app.services.newsletter_service import list_subscriptions

settings = get_settings()
router = APIRouter(prefix="/admin", tags=["Admin"])


# --- Users ---

@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    identity: Identity = Depends(require_roles(*USER_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    rows, stats = await user_service.list_users_with_stats(db)
    users = [
        UserWithStats(
            **UserResponse.model_validate(row["user"]).model_dump(),
            total_registrations=row["total_registrations"],
            active_registrations=row["active_registrations"],
            paid_registrations=row["paid_registrations"],
        )
        for row in rows
    ]
    return AdminUserListResponse(users=users, stats=UserListStats(**stats))


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: AdminUserCreate,
    identity: Identity = Depends(require_roles(*USER_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Create an account with any role."""
    return await register_user(db, provider, user_data, role=user_data.role)


@router.patch("/users/{user_id}/role", response_model=RoleUpdateResponse)
async def update_user_role(
    user_id: int,
    data: RoleUpdate,
    identity: Identity = Depends(require_roles(*USER_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    user = await user_service.update_role(db, provider, identity, user_id, data.role)
    return RoleUpdateResponse(message="User role updated successfully", user=UserResponse.model_validate(user))


# --- Events ---

@router.get("/events", response_model=list[AdminEventResponse])
async def list_events_with_stats(
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=500),
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Events with registration counts and paid revenue."""
    events, _ = await event_service.list_events(db, page, page_size)
    stats = await event_service.get_event_stats(db, events)
    return [
        AdminEventResponse(
            **EventResponse.model_validate(event).model_dump(),
            stats=EventStats(**stats[event.id]),
        )
        for event in events
    ]


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    identity: Identity = Depends(require_roles(*EVENT_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.create_event(db, event_data)
    await db.commit()
    await invalidate_event_cache()
    return event


@router.patch("/events/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    updates: EventUpdate,
    identity: Identity = Depends(require_roles(*EVENT_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.update_event(db, event_id, updates)
    await db.commit()
    await invalidate_event_cache()
    return event


@router.delete("/events/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: int,
    identity: Identity = Depends(require_roles(*EVENT_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Delete an event. Refused with 409 while it has active registrations."""
    await event_service.delete_event(db, event_id, blob_store)
    await db.commit()
    await invalidate_event_cache()
    return MessageResponse(message="Event deleted successfully")


# --- Registrations ---

@router.post(
    "/events/register",
    response_model=RegistrationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_on_behalf(
    payload: str = Form(...),
    evidence_file: Optional[UploadFile] = File(None),
    identity: Identity = Depends(require_roles(*REGISTRAR_ROLES)),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """
    Register another user. The payment status is taken from the payload and
    evidence is optional; capacity and duplicate rules still apply.
    """
    async with track_registration("admin"):
        data = parse_json_form(AdminRegistrationCreate, payload)
        evidence = None
        if evidence_file is not None:
            evidence = await read_evidence_upload(evidence_file, settings.EVIDENCE_MAX_BYTES_ADMIN)
        registration, deferred = await registration_service.admin_register(db, blob_store, identity, data, evidence)

    await db.commit()
    await invalidate_event_cache()
    response = RegistrationCreatedResponse.model_validate(registration)
    response.evidence_deferred = deferred
    return response


@router.get("/registrations", response_model=AdminRegistrationListResponse)
async def list_registrations(
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    event_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    registrations, stats, total = await registration_service.list_registrations(
        db,
        status=status_filter.value if status_filter else None,
        event_id=event_id,
        user_id=user_id,
        page=page,
        limit=limit,
    )
    return AdminRegistrationListResponse(
        registrations=[RegistrationResponse.model_validate(r) for r in registrations],
        stats=RegistrationStats(**stats),
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.patch("/registrations/{registration_id}", response_model=RegistrationResponse)
async def update_payment_status(
    registration_id: int,
    data: PaymentStatusUpdate,
    identity: Identity = Depends(require_roles(*FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Move a registration through the payment state machine."""
    registration = await registration_service.update_payment_status(
        db, registration_id, data.payment_status, identity,
    )
    await db.commit()
    await invalidate_event_cache()
    return registration


@router.put("/payment-evidence/{registration_id}", response_model=EvidenceUpdateResponse)
async def replace_registration_evidence(
    registration_id: int,
    evidence_file: UploadFile = File(...),
    identity: Identity = Depends(require_roles(*FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Upload or replace payment evidence on any registration (max 10MB)."""
    upload = await read_evidence_upload(evidence_file, settings.EVIDENCE_MAX_BYTES_ADMIN)
    path = await replace_evidence(db, blob_store, registration_id, upload, identity, as_admin=True)
    return EvidenceUpdateResponse(
        message="Payment evidence updated successfully",
        evidence_path=path,
        original_name=upload.original_name,
    )


@router.get("/payment-evidence/{registration_id}")
async def get_registration_evidence(
    registration_id: int,
    identity: Identity = Depends(require_roles(*FINANCE_ROLES)),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    data, content_type, filename = await download_evidence(db, blob_store, registration_id, identity, as_admin=True)
    return Response(
        content=data,
        media_type=content_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


# --- Newsletter ---

@router.get("/newsletter-subscriptions", response_model=NewsletterListResponse)
async def list_newsletter_subscriptions(
    identity: Identity = Depends(require_roles(*USER_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    subscriptions, total, recent = await list_subscriptions(db)
    return NewsletterListResponse(
        subscriptions=[NewsletterSubscriptionResponse.model_validate(s) for s in subscriptions],
        total=total,
        recent_subscriptions=recent,
    )


# --- Sponsorships and exhibitions ---

@router.get("/sponsorships", response_model=list[SponsorshipWithEvent])
async def list_sponsorships(
    event_id: Optional[int] = Query(None),
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await partner_service.list_applications(db, Sponsorship, event_id)


@router.patch("/sponsorships/{application_id}", response_model=SponsorshipResponse)
async def review_sponsorship(
    application_id: int,
    data: ApplicationStatusUpdate,
    identity: Identity = Depends(require_roles(*PARTNER_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await partner_service.update_status(
        db, Sponsorship, application_id, data.status, data.payment_status, identity,
    )


@router.get("/exhibitions", response_model=list[ExhibitionWithEvent])
async def list_exhibitions(
    event_id: Optional[int] = Query(None),
    identity: Identity = Depends(require_roles(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await partner_service.list_applications(db, Exhibition, event_id)


@router.patch("/exhibitions/{application_id}", response_model=ExhibitionResponse)
async def review_exhibition(
    application_id: int,
    data: ApplicationStatusUpdate,
    identity: Identity = Depends(require_roles(*PARTNER_ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await partner_service.update_status(
        db, Exhibition, application_id, data.status, data.payment_status, identity,
    )
