"""
Endpoints over a user's profile and own registrations: listing, cancellation and
payment evidence.
"""

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_blob_store, get_current_identity, require_roles
from app.core.config import get_settings
from app.core.permissions import USER_ADMIN_ROLES, Role, ensure_owner_or_admin
from app.db.session import get_db
from app.schemas.admin import MessageResponse
from app.schemas.user import ProfileUpdate, UserResponse
from app.schemas.registration import (
    EvidenceUpdateResponse, RegistrationCancelResponse, RegistrationResponse, RegistrationWithEvent,
)
from app.services.cache_service import invalidate_event_cache
from app.services.evidence_service import download_evidence, read_evidence_upload, replace_evidence
from app.services.interfaces.blob_store import BlobStore
from app.services.interfaces.identity import Identity
from app.services.user_service import update_profile
from app.services.registration_service import (
    cancel_registration, delete_registration, list_user_registrations,
)

settings = get_settings()
router = APIRouter(prefix="/users", tags=["Users"])


@router.patch("/{user_id}/profile", response_model=UserResponse)
async def update_profile_endpoint(
    user_id: int,
    updates: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Update name and phone number. Owner or super admin."""
    ensure_owner_or_admin(identity, user_id, admin_roles=USER_ADMIN_ROLES)
    return await update_profile(db, identity, user_id, updates)


@router.get("/{user_id}/registrations", response_model=list[RegistrationWithEvent])
async def list_registrations_endpoint(
    user_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """All registrations of a user with their events. Owner or any admin role."""
    ensure_owner_or_admin(identity, user_id)
    return await list_user_registrations(db, user_id)


@router.patch("/{user_id}/registrations/{registration_id}/cancel", response_model=RegistrationCancelResponse)
async def cancel_registration_endpoint(
    user_id: int,
    registration_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a registration and release its spot back to the event."""
    ensure_owner_or_admin(identity, user_id)
    registration = await cancel_registration(db, registration_id, identity, owner_id=user_id)
    await db.commit()
    await invalidate_event_cache()
    return RegistrationCancelResponse(
        message="Registration cancelled successfully",
        registration=RegistrationResponse.model_validate(registration),
    )


@router.delete("/{user_id}/registrations/{registration_id}", response_model=MessageResponse)
async def delete_registration_endpoint(
    user_id: int,
    registration_id: int,
    identity: Identity = Depends(require_roles(Role.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Permanently delete a registration (super admin)."""
    await delete_registration(db, blob_store, registration_id, user_id, identity)
    await db.commit()
    await invalidate_event_cache()
    return MessageResponse(message="Registration deleted successfully")


@router.put("/payment-evidence/{registration_id}", response_model=EvidenceUpdateResponse)
async def replace_own_evidence(
    registration_id: int,
    evidence_file: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Upload or replace payment evidence on your own registration (max 5MB)."""
    upload = await read_evidence_upload(evidence_file, settings.EVIDENCE_MAX_BYTES_USER)
    path = await replace_evidence(db, blob_store, registration_id, upload, identity)
    return EvidenceUpdateResponse(
        message="Payment evidence updated successfully",
        evidence_path=path,
        original_name=upload.original_name,
    )


@router.get("/payment-evidence/{registration_id}")
async def get_own_evidence(
    registration_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    data, content_type, filename = await download_evidence(db, blob_store, registration_id, identity)
    return Response(
        content=data,
        media_type=content_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
