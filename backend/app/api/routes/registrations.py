"""
Self-service registration endpoints.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_blob_store, get_current_identity, parse_json_form
from app.core.config import get_settings
from app.core.errors import AppError, ConflictError, StorageError, ValidationError
from app.core.metrics import record_registration_attempt, registration_latency
from app.db.session import get_db
from app.schemas.registration import (
    RegistrationCreate, RegistrationCreatedResponse, StepPayload, StepValidationResult,
)
from app.services.cache_service import invalidate_event_cache
from app.services.evidence_service import read_evidence_upload
from app.services.interfaces.blob_store import BlobStore
from app.services.interfaces.identity import Identity
from app.services.registration_service import register
from app.services.step_validation import validate_step

settings = get_settings()
router = APIRouter(tags=["Registrations"])


@asynccontextmanager
async def track_registration(path: str):
    """Time a registration attempt and count it by outcome."""
    with registration_latency.time():
        try:
            yield
        except ConflictError:
            record_registration_attempt(path, "conflict")
            raise
        except ValidationError:
            record_registration_attempt(path, "invalid")
            raise
        except StorageError:
            record_registration_attempt(path, "storage_error")
            raise
        except AppError:
            record_registration_attempt(path, "rejected")
            raise
    record_registration_attempt(path, "success")


@router.post(
    "/events/register",
    response_model=RegistrationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    payload: str = Form(...),
    evidence_file: Optional[UploadFile] = File(None),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """
    Register the authenticated user for an event.

    `payload` is the JSON-encoded registration form. Mobile and bank payments
    must attach `evidence_file` (JPEG, PNG or PDF). The attendee count is
    claimed atomically, so concurrent submissions can never overfill an event.
    """
    async with track_registration("self"):
        data = parse_json_form(RegistrationCreate, payload)
        evidence = None
        if evidence_file is not None:
            evidence = await read_evidence_upload(evidence_file, settings.EVIDENCE_MAX_BYTES_USER)
        registration, deferred = await register(db, blob_store, identity, data, evidence)

    await db.commit()
    await invalidate_event_cache()
    response = RegistrationCreatedResponse.model_validate(registration)
    response.evidence_deferred = deferred
    return response


@router.post("/registrations/validate/{step}", response_model=StepValidationResult)
async def validate_registration_step(
    step: str,
    payload: StepPayload,
    identity: Identity = Depends(get_current_identity),
):
    """Validate one form step; failures come back as 400 naming the field."""
    validate_step(step, payload)
    return StepValidationResult(step=step)
