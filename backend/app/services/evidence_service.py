"""
Payment evidence: upload validation, blob paths, replace and download.

Replace ordering: the new blob is written first, the registration is pointed
at it and committed, and only then is the previous blob deleted. A failure at
any step leaves payment_evidence pointing at a blob that exists.
"""

import time
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthorizationError, ConflictError, NotFoundError, StorageError, ValidationError
from app.core.logging import get_logger
from app.core.metrics import record_evidence_upload
from app.models.registration import EventRegistration, PaymentStatus
from app.services.interfaces.blob_store import BlobNotFound, BlobStore, BlobStoreError
from app.services.interfaces.identity import Identity

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}

EXTENSION_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".pdf": "application/pdf",
}


@dataclass
class EvidenceUpload:
    data: bytes
    content_type: str
    original_name: Optional[str] = None

    @property
    def extension(self) -> str:
        return ALLOWED_CONTENT_TYPES[self.content_type]


async def read_evidence_upload(file: UploadFile, max_bytes: int) -> EvidenceUpload:
    """Validate type and size of an uploaded evidence file and read it."""
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        record_evidence_upload("rejected")
        raise ValidationError(
            "Invalid file type. Only JPEG, PNG, and PDF files are allowed.",
            field="evidence_file",
        )

    limit_mb = max_bytes // (1024 * 1024)
    if file.size is not None and file.size > max_bytes:
        record_evidence_upload("rejected")
        raise ValidationError(f"File too large. Maximum size is {limit_mb}MB.", field="evidence_file")

    data = await file.read(max_bytes + 1)
    if len(data) > max_bytes:
        record_evidence_upload("rejected")
        raise ValidationError(f"File too large. Maximum size is {limit_mb}MB.", field="evidence_file")
    if not data:
        record_evidence_upload("rejected")
        raise ValidationError("Evidence file is empty", field="evidence_file")

    return EvidenceUpload(data=data, content_type=content_type, original_name=file.filename)


def build_evidence_path(user_id: int, event_id: int, upload: EvidenceUpload) -> str:
    stamp = int(time.time() * 1000)
    filename = f"payment_evidence_{stamp}_{uuid.uuid4().hex[:6]}{upload.extension}"
    return f"evidence/{user_id}/{event_id}/{filename}"


def content_type_for(path: str) -> str:
    for ext, content_type in EXTENSION_CONTENT_TYPES.items():
        if path.lower().endswith(ext):
            return content_type
    return "application/octet-stream"


async def store_evidence(blob_store: BlobStore, user_id: int, event_id: int, upload: EvidenceUpload) -> str:
    """Upload to a fresh path. Raises BlobStoreError; callers decide whether that is fatal."""
    path = build_evidence_path(user_id, event_id, upload)
    await blob_store.upload(path, upload.data, upload.content_type)
    return path


async def _get_registration(db: AsyncSession, registration_id: int) -> EventRegistration:
    registration = await db.get(EventRegistration, registration_id)
    if not registration:
        raise NotFoundError("Registration not found", field="registration_id")
    return registration


async def replace_evidence(
    db: AsyncSession,
    blob_store: BlobStore,
    registration_id: int,
    upload: EvidenceUpload,
    identity: Identity,
    as_admin: bool = False,
) -> str:
    registration = await _get_registration(db, registration_id)

    if not as_admin and registration.user_id != identity.id:
        raise AuthorizationError("Access denied")
    if registration.payment_status == PaymentStatus.CANCELLED.value:
        raise ConflictError("Registration is cancelled", field="registration_id")

    try:
        new_path = await store_evidence(blob_store, registration.user_id, registration.event_id, upload)
    except BlobStoreError as e:
        record_evidence_upload("failed")
        logger.error("evidence_upload_failed", registration_id=registration_id, error=str(e))
        raise StorageError("Failed to store payment evidence", field="evidence_file")

    old_path = registration.payment_evidence
    registration.payment_evidence = new_path
    await db.flush()
    await db.commit()
    record_evidence_upload("stored")

    if old_path and old_path != new_path:
        try:
            await blob_store.delete(old_path)
        except BlobStoreError as e:
            # The registration already points at the new blob; the old one is only garbage now
            logger.warning("evidence_old_blob_delete_failed", registration_id=registration_id, path=old_path, error=str(e))

    logger.info(
        "evidence_replaced",
        registration_id=registration_id,
        by_user=identity.id,
        as_admin=as_admin,
        replaced=old_path is not None,
    )
    return new_path


async def download_evidence(
    db: AsyncSession,
    blob_store: BlobStore,
    registration_id: int,
    identity: Identity,
    as_admin: bool = False,
) -> tuple[bytes, str, str]:
    """Return (data, content_type, filename) for a registration's current evidence."""
    registration = await _get_registration(db, registration_id)

    if not as_admin and registration.user_id != identity.id:
        raise AuthorizationError("Access denied")
    if not registration.payment_evidence:
        raise NotFoundError("Evidence file not found", field="payment_evidence")

    path = registration.payment_evidence
    try:
        data = await blob_store.download(path)
    except BlobNotFound:
        logger.error("evidence_blob_missing", registration_id=registration_id, path=path)
        raise NotFoundError("Evidence file not found in storage", field="payment_evidence")
    except BlobStoreError as e:
        logger.error("evidence_download_failed", registration_id=registration_id, error=str(e))
        raise StorageError("Failed to read payment evidence")

    return data, content_type_for(path), path.rsplit("/", 1)[-1]
