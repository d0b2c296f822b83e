"""
Registration workflow and payment-status management.

CONCURRENCY STRATEGY: Conditional atomic counter updates
========================================================

Problem:
  Two users register for the last spot simultaneously. Both read
  current_attendees = max_attendees - 1, both insert, both increment.
  Result: the event is over capacity.

Solution:
  The spot is claimed with one statement that only succeeds while there is room:

    UPDATE events SET current_attendees = current_attendees + 1
    WHERE id = :event_id
      AND (max_attendees IS NULL OR current_attendees < max_attendees)
    RETURNING current_attendees

  No row returned means the event filled up after our pre-check. The claim,
  the registration number and the registration row are written in the same
  transaction (see app.db.session.get_db), so if the insert fails the claim
  is rolled back with it and the counter never diverges from the rows.

  Cancellation runs the mirror image. The status flip is guarded by
  `payment_status <> 'cancelled'` so a second cancel matches no row and
  can never decrement twice. The decrement itself floors at zero.

  Duplicate active registrations are rejected up front. The partial unique
  index on (user_id, event_id) catches the ones that race past that check.
"""

from typing import Optional

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import (
    AuthorizationError, ConflictError, NotFoundError, StorageError, ValidationError,
)
from app.core.logging import get_logger
from app.core.metrics import record_cancellation, record_evidence_upload, record_payment_status_update
from app.core.permissions import can_cancel_for_others
from app.models.event import Event
from app.models.registration import EventRegistration, PaymentMethod, PaymentStatus
from app.models.user import User
from app.schemas.registration import AdminRegistrationCreate, RegistrationCreate
from app.services import pricing, registration_number
from app.services.event_service import get_event
from app.services.evidence_service import EvidenceUpload, store_evidence
from app.services.interfaces.blob_store import BlobStore, BlobStoreError
from app.services.interfaces.identity import Identity
from app.services.payment_state import (
    EVIDENCE_REQUIRED_METHODS, derive_has_paid, ensure_transition, parse_status,
)
from app.services.step_validation import (
    parse_delegate_type, validate_affiliation, validate_identity, validate_payment,
)

logger = get_logger(__name__)

# Statuses an admin may create a registration in
ADMIN_CREATABLE = frozenset({
    PaymentStatus.PENDING,
    PaymentStatus.PAID,
    PaymentStatus.COMPLETED,
    PaymentStatus.FAILED,
})


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", field="user_id")
    return user


async def get_registration(db: AsyncSession, registration_id: int) -> EventRegistration:
    registration = await db.get(EventRegistration, registration_id)
    if not registration:
        raise NotFoundError("Registration not found", field="registration_id")
    return registration


async def _ensure_not_registered(db: AsyncSession, user_id: int, event_id: int) -> None:
    existing = await db.execute(
        select(EventRegistration.id).where(
            EventRegistration.user_id == user_id,
            EventRegistration.event_id == event_id,
            EventRegistration.payment_status != PaymentStatus.CANCELLED.value,
        ).limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Already registered for this event", field="event_id")


async def _reload_event(db: AsyncSession, event_id: int) -> Optional[Event]:
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _claim_spot(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            or_(Event.max_attendees.is_(None), Event.current_attendees < Event.max_attendees),
        )
        .values(current_attendees=Event.current_attendees + 1)
        .returning(Event.current_attendees)
        .execution_options(synchronize_session=False)
    )
    count = result.scalar_one_or_none()
    if count is None:
        logger.warning("registration_failed_event_full", event_id=event_id)
        raise ConflictError("Event is full", field="event_id")
    await _reload_event(db, event_id)
    return count


async def _release_spot(db: AsyncSession, event_id: int) -> None:
    await db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(current_attendees=case(
            (Event.current_attendees > 0, Event.current_attendees - 1),
            else_=0,
        ))
        .execution_options(synchronize_session=False)
    )
    await _reload_event(db, event_id)


def packages_from(data) -> pricing.PackageSelection:
    return pricing.PackageSelection(
        accommodation=data.accommodation_package,
        victoria_falls=data.victoria_falls_package,
        boat_cruise=data.boat_cruise_package,
        dinner_gala=data.dinner_gala_attendance,
    )


async def _create(
    db: AsyncSession,
    blob_store: BlobStore,
    data: RegistrationCreate,
    evidence: Optional[EvidenceUpload],
    *,
    admin_path: bool,
    status: PaymentStatus,
) -> tuple[EventRegistration, bool]:
    user = await _get_user(db, data.user_id)

    await _ensure_not_registered(db, data.user_id, data.event_id)

    event = await get_event(db, data.event_id)
    if event.is_full:
        logger.warning("registration_failed_event_full", event_id=event.id, user_id=user.id)
        raise ConflictError("Event is full", field="event_id")

    delegate_type = parse_delegate_type(data.delegate_type)
    validate_identity(
        country=data.country,
        first_name=data.first_name or user.first_name,
        last_name=data.last_name or user.last_name,
        email=data.email or user.email,
        phone_number=data.phone_number or user.phone_number,
    )
    validate_affiliation(organization=data.organization, position=data.position)
    method = validate_payment(
        payment_method=data.payment_method,
        has_evidence=evidence is not None,
        group_size=data.group_size,
        organization_reference=data.organization_reference,
        require_evidence=not admin_path,
    )

    fee = pricing.quote(delegate_type, packages_from(data), event.price)
    price_paid = fee.total
    if admin_path and isinstance(data, AdminRegistrationCreate) and data.price_paid is not None:
        price_paid = data.price_paid

    has_paid = derive_has_paid(status, method)
    if admin_path and isinstance(data, AdminRegistrationCreate) and data.has_paid is not None:
        if data.has_paid != has_paid:
            raise ValidationError(
                f"has_paid must be {str(has_paid).lower()} for status {status.value} and method {method.value}",
                field="has_paid",
            )

    await _claim_spot(db, event.id)
    number = await registration_number.allocate(db)

    is_group = method == PaymentMethod.GROUP_PAYMENT
    registration = EventRegistration(
        registration_number=number,
        user_id=user.id,
        event_id=event.id,
        payment_status=status.value,
        payment_method=method.value,
        has_paid=has_paid,
        delegate_type=delegate_type.value if delegate_type else None,
        country=data.country.strip(),
        organization=data.organization.strip(),
        position=data.position.strip(),
        notes=data.notes,
        group_size=data.group_size if is_group else None,
        group_payment_amount=data.group_payment_amount if is_group else None,
        group_payment_currency=data.group_payment_currency if is_group else None,
        organization_reference=(
            data.organization_reference
            if method in (PaymentMethod.GROUP_PAYMENT, PaymentMethod.ORG_PAID) else None
        ),
        currency=fee.currency,
        price_paid=price_paid,
        accommodation_package=data.accommodation_package,
        victoria_falls_package=data.victoria_falls_package,
        boat_cruise_package=data.boat_cruise_package,
        dinner_gala_attendance=data.dinner_gala_attendance,
    )
    db.add(registration)
    try:
        await db.flush()
    except IntegrityError as e:
        if "registration_number" in str(e.orig):
            logger.warning("registration_number_collision", number=number)
            raise ConflictError("Registration number conflict, please retry")
        raise ConflictError("Already registered for this event", field="event_id")

    evidence_deferred = False
    if evidence is not None:
        try:
            registration.payment_evidence = await store_evidence(blob_store, user.id, event.id, evidence)
            record_evidence_upload("stored")
        except BlobStoreError as e:
            if method in EVIDENCE_REQUIRED_METHODS:
                record_evidence_upload("failed")
                logger.error("registration_evidence_failed", user_id=user.id, event_id=event.id, error=str(e))
                raise StorageError("Failed to store payment evidence", field="evidence_file")
            record_evidence_upload("deferred")
            logger.warning(
                "evidence_deferred",
                user_id=user.id,
                event_id=event.id,
                payment_method=method.value,
                error=str(e),
            )
            evidence_deferred = True
        await db.flush()

    await db.refresh(registration)
    logger.info(
        "registration_created",
        registration_id=registration.id,
        registration_number=registration.registration_number,
        user_id=user.id,
        event_id=event.id,
        payment_method=method.value,
        payment_status=status.value,
        price_paid=str(price_paid),
        currency=fee.currency,
        admin_path=admin_path,
    )
    return registration, evidence_deferred


async def register(
    db: AsyncSession,
    blob_store: BlobStore,
    identity: Identity,
    data: RegistrationCreate,
    evidence: Optional[EvidenceUpload] = None,
) -> tuple[EventRegistration, bool]:
    """
    Self-service registration. Always starts pending; whatever payment state
    the client asserted is ignored.

    Returns (registration, evidence_deferred).
    """
    if data.user_id != identity.id:
        raise AuthorizationError("Can only register for yourself")
    return await _create(db, blob_store, data, evidence, admin_path=False, status=PaymentStatus.PENDING)


async def admin_register(
    db: AsyncSession,
    blob_store: BlobStore,
    identity: Identity,
    data: AdminRegistrationCreate,
    evidence: Optional[EvidenceUpload] = None,
) -> tuple[EventRegistration, bool]:
    """Registration on behalf of another user with admin-supplied payment status."""
    status = parse_status(data.payment_status.value, allowed=ADMIN_CREATABLE)
    registration, deferred = await _create(db, blob_store, data, evidence, admin_path=True, status=status)
    logger.info("admin_registration", registration_id=registration.id, by_user=identity.id)
    return registration, deferred


async def _cancel(db: AsyncSession, registration: EventRegistration) -> None:
    result = await db.execute(
        update(EventRegistration)
        .where(
            EventRegistration.id == registration.id,
            EventRegistration.payment_status != PaymentStatus.CANCELLED.value,
        )
        .values(payment_status=PaymentStatus.CANCELLED.value, has_paid=False)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError("Registration already cancelled", field="registration_id")

    await _release_spot(db, registration.event_id)
    await db.refresh(registration)
    record_cancellation()


async def cancel_registration(
    db: AsyncSession,
    registration_id: int,
    identity: Identity,
    owner_id: Optional[int] = None,
) -> EventRegistration:
    """
    Soft-cancel a registration and give its spot back to the event.
    Allowed for the owner and for finance, event-manager and super-admin roles.
    """
    registration = await get_registration(db, registration_id)

    if owner_id is not None and registration.user_id != owner_id:
        raise NotFoundError("Registration not found", field="registration_id")
    if registration.user_id != identity.id and not can_cancel_for_others(identity.role):
        raise AuthorizationError("Access denied")

    await _cancel(db, registration)

    logger.info(
        "registration_cancelled",
        registration_id=registration.id,
        user_id=registration.user_id,
        event_id=registration.event_id,
        by_user=identity.id,
    )
    return registration


async def delete_registration(
    db: AsyncSession,
    blob_store: BlobStore,
    registration_id: int,
    owner_id: int,
    identity: Identity,
) -> None:
    """Hard delete (super admin). Frees the spot if the registration was active."""
    registration = await get_registration(db, registration_id)
    if registration.user_id != owner_id:
        raise NotFoundError("Registration not found", field="registration_id")

    was_active = registration.is_active
    event_id = registration.event_id
    evidence_path = registration.payment_evidence

    await db.delete(registration)
    await db.flush()
    if was_active:
        await _release_spot(db, event_id)
    await db.commit()

    if evidence_path:
        try:
            await blob_store.delete(evidence_path)
        except BlobStoreError as e:
            logger.warning("evidence_cleanup_failed", registration_id=registration_id, path=evidence_path, error=str(e))

    logger.info(
        "registration_deleted",
        registration_id=registration_id,
        event_id=event_id,
        was_active=was_active,
        by_user=identity.id,
    )


async def update_payment_status(
    db: AsyncSession,
    registration_id: int,
    new_status: str,
    identity: Identity,
) -> EventRegistration:
    """
    Finance update of the payment status. Re-applying the current status is a
    no-op. Moving to cancelled goes through cancellation so the event counter
    stays in step.
    """
    target = parse_status(new_status)
    registration = await get_registration(db, registration_id)
    current = PaymentStatus(registration.payment_status)

    if current == target:
        record_payment_status_update(target.value, changed=False)
        logger.info("payment_status_unchanged", registration_id=registration_id, status=target.value)
        return registration

    ensure_transition(current, target)

    if target == PaymentStatus.CANCELLED:
        await _cancel(db, registration)
    else:
        result = await db.execute(
            update(EventRegistration)
            .where(
                EventRegistration.id == registration.id,
                EventRegistration.payment_status == current.value,
            )
            .values(
                payment_status=target.value,
                has_paid=derive_has_paid(target, registration.payment_method),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError("Registration was modified concurrently, please retry", field="payment_status")
        await db.refresh(registration)

    record_payment_status_update(target.value, changed=True)
    logger.info(
        "payment_status_updated",
        registration_id=registration_id,
        from_status=current.value,
        to_status=target.value,
        has_paid=registration.has_paid,
        by_user=identity.id,
    )
    return registration


async def list_user_registrations(db: AsyncSession, user_id: int) -> list[EventRegistration]:
    """All registrations of a user, newest first, with the event attached."""
    await _get_user(db, user_id)
    result = await db.execute(
        select(EventRegistration)
        .options(selectinload(EventRegistration.event))
        .where(EventRegistration.user_id == user_id)
        .order_by(EventRegistration.registered_at.desc(), EventRegistration.id.desc())
    )
    return list(result.scalars().all())


async def list_registrations(
    db: AsyncSession,
    status: Optional[str] = None,
    event_id: Optional[int] = None,
    user_id: Optional[int] = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[EventRegistration], dict, int]:
    """Admin listing: filtered, newest first, paginated, with per-status counts."""
    conditions = []
    if status:
        conditions.append(EventRegistration.payment_status == status)
    if event_id is not None:
        conditions.append(EventRegistration.event_id == event_id)
    if user_id is not None:
        conditions.append(EventRegistration.user_id == user_id)

    counts = dict((await db.execute(
        select(EventRegistration.payment_status, func.count())
        .where(*conditions)
        .group_by(EventRegistration.payment_status)
    )).all())
    total = sum(counts.values())
    stats = {"total": total, **{s.value: int(counts.get(s.value, 0)) for s in PaymentStatus}}

    result = await db.execute(
        select(EventRegistration)
        .where(*conditions)
        .order_by(EventRegistration.registered_at.desc(), EventRegistration.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), stats, total
