"""
Tests for payment evidence: degraded uploads, replace ordering and downloads.
"""

import pytest
from httpx import AsyncClient

from app.core.errors import StorageError
from app.services.evidence_service import EvidenceUpload, replace_evidence
from app.services.interfaces.blob_store import BlobStoreError
from app.services.interfaces.identity import Identity
from conftest import (
    PDF_BYTES, PNG_BYTES, LocalBlobStore, evidence_file, fetch_event, fetch_registrations,
    headers_for, registration_form,
)


async def register(client, user, event_id, files=None, **overrides):
    return await client.post(
        "/api/v1/events/register",
        data=registration_form(user.id, event_id, **overrides),
        files=files,
        headers=headers_for(user),
    )


# --- Upload failures at registration ---

@pytest.mark.asyncio
async def test_group_payment_evidence_failure_is_deferred(
    client: AsyncClient, failing_blob_store, test_user, test_event, session_factory
):
    response = await register(
        client, test_user, test_event.id, files=evidence_file(),
        payment_method="group_payment", group_size=3,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["evidence_deferred"] is True
    assert data["payment_evidence"] is None
    assert (await fetch_event(session_factory, test_event.id)).current_attendees == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["mobile", "bank"])
async def test_transfer_evidence_failure_blocks_registration(
    client: AsyncClient, failing_blob_store, test_user, test_event, session_factory, method
):
    """The whole registration rolls back: no row, no claimed spot, no number consumed."""
    response = await register(client, test_user, test_event.id, files=evidence_file(), payment_method=method)
    assert response.status_code == 500
    assert response.json()["field"] == "evidence_file"

    assert await fetch_registrations(session_factory) == []
    assert (await fetch_event(session_factory, test_event.id)).current_attendees == 0


@pytest.mark.asyncio
async def test_evidence_too_large(client: AsyncClient, test_user, test_event, monkeypatch):
    from app.api.routes import registrations

    monkeypatch.setattr(registrations.settings, "EVIDENCE_MAX_BYTES_USER", 16)
    response = await register(client, test_user, test_event.id, files=evidence_file(), payment_method="bank")
    assert response.status_code == 400
    assert response.json()["field"] == "evidence_file"
    assert "too large" in response.json()["message"]


# --- Replace ---

@pytest.mark.asyncio
async def test_replace_deletes_old_blob_after_storing_new(
    client: AsyncClient, test_user, test_event, blob_store
):
    created = (await register(client, test_user, test_event.id, files=evidence_file(), payment_method="bank")).json()
    old_path = created["payment_evidence"]

    response = await client.put(
        f"/api/v1/users/payment-evidence/{created['id']}",
        files=evidence_file(PDF_BYTES, "application/pdf", "statement.pdf"),
        headers=headers_for(test_user),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["original_name"] == "statement.pdf"
    new_path = data["evidence_path"]
    assert new_path != old_path
    assert new_path.endswith(".pdf")

    assert await blob_store.download(new_path) == PDF_BYTES
    assert not (blob_store.root / old_path).exists()


@pytest.mark.asyncio
async def test_failed_replace_keeps_old_evidence(
    client: AsyncClient, test_user, test_event, blob_store, failing_blob_store, session_factory
):
    from app.api.deps import get_blob_store
    from app.main import app

    app.dependency_overrides[get_blob_store] = lambda: blob_store
    created = (await register(client, test_user, test_event.id, files=evidence_file(), payment_method="mobile")).json()
    old_path = created["payment_evidence"]

    app.dependency_overrides[get_blob_store] = lambda: failing_blob_store
    response = await client.put(
        f"/api/v1/users/payment-evidence/{created['id']}",
        files=evidence_file(),
        headers=headers_for(test_user),
    )
    assert response.status_code == 500

    [row] = await fetch_registrations(session_factory)
    assert row.payment_evidence == old_path
    assert failing_blob_store.deleted == []
    assert await blob_store.download(old_path) == PNG_BYTES


class ForgetfulBlobStore(LocalBlobStore):
    """Stores fine, but every delete fails."""

    async def delete(self, path: str) -> None:
        raise BlobStoreError("delete refused")


@pytest.mark.asyncio
async def test_replace_survives_old_blob_delete_failure(db_session, test_user, test_event, tmp_path):
    """Failing to clean up the old blob leaves the registration on the new one."""
    from app.models.registration import EventRegistration

    store = ForgetfulBlobStore(str(tmp_path / "forgetful"))
    await store.upload("evidence/old.png", PNG_BYTES, "image/png")
    registration = EventRegistration(
        registration_number="0001",
        user_id=test_user.id,
        event_id=test_event.id,
        payment_method="bank",
        payment_evidence="evidence/old.png",
    )
    db_session.add(registration)
    await db_session.commit()

    identity = Identity(id=test_user.id, email=test_user.email, role=test_user.role)
    new_path = await replace_evidence(
        db_session, store, registration.id, EvidenceUpload(data=PDF_BYTES, content_type="application/pdf"), identity,
    )

    await db_session.refresh(registration)
    assert registration.payment_evidence == new_path
    assert await store.download(new_path) == PDF_BYTES


@pytest.mark.asyncio
async def test_replace_failure_raises_storage_error(db_session, test_user, test_event):
    from conftest import FailingBlobStore
    from app.models.registration import EventRegistration

    registration = EventRegistration(
        registration_number="0001", user_id=test_user.id, event_id=test_event.id, payment_method="cash",
    )
    db_session.add(registration)
    await db_session.commit()

    identity = Identity(id=test_user.id, email=test_user.email, role=test_user.role)
    with pytest.raises(StorageError):
        await replace_evidence(
            db_session, FailingBlobStore(), registration.id, EvidenceUpload(data=PNG_BYTES, content_type="image/png"), identity,
        )


@pytest.mark.asyncio
async def test_replace_other_users_evidence_forbidden(client: AsyncClient, test_user, other_user, test_event):
    created = (await register(client, test_user, test_event.id)).json()
    response = await client.put(
        f"/api/v1/users/payment-evidence/{created['id']}",
        files=evidence_file(),
        headers=headers_for(other_user),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_replace_on_cancelled_registration(client: AsyncClient, test_user, test_event):
    created = (await register(client, test_user, test_event.id)).json()
    await client.patch(
        f"/api/v1/users/{test_user.id}/registrations/{created['id']}/cancel",
        headers=headers_for(test_user),
    )
    response = await client.put(
        f"/api/v1/users/payment-evidence/{created['id']}",
        files=evidence_file(),
        headers=headers_for(test_user),
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_deferred_group_evidence_can_be_supplied_later(
    client: AsyncClient, test_user, test_event, blob_store, failing_blob_store
):
    from app.api.deps import get_blob_store
    from app.main import app

    created = (await register(
        client, test_user, test_event.id, files=evidence_file(),
        payment_method="group_payment", group_size=2,
    )).json()
    assert created["evidence_deferred"] is True

    app.dependency_overrides[get_blob_store] = lambda: blob_store
    response = await client.put(
        f"/api/v1/users/payment-evidence/{created['id']}",
        files=evidence_file(),
        headers=headers_for(test_user),
    )
    assert response.status_code == 200


# --- Download ---

@pytest.mark.asyncio
async def test_owner_downloads_evidence(client: AsyncClient, test_user, test_event):
    created = (await register(client, test_user, test_event.id, files=evidence_file(), payment_method="bank")).json()

    response = await client.get(
        f"/api/v1/users/payment-evidence/{created['id']}",
        headers=headers_for(test_user),
    )
    assert response.status_code == 200
    assert response.content == PNG_BYTES
    assert response.headers["content-type"] == "image/png"


@pytest.mark.asyncio
async def test_finance_downloads_and_replaces_evidence(client: AsyncClient, test_user, test_event, finance_headers):
    created = (await register(client, test_user, test_event.id, files=evidence_file(), payment_method="bank")).json()

    response = await client.get(f"/api/v1/admin/payment-evidence/{created['id']}", headers=finance_headers)
    assert response.status_code == 200
    assert response.content == PNG_BYTES

    response = await client.put(
        f"/api/v1/admin/payment-evidence/{created['id']}",
        files=evidence_file(PDF_BYTES, "application/pdf", "bank.pdf"),
        headers=finance_headers,
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_event_manager_cannot_download_evidence(client: AsyncClient, test_user, test_event, manager_headers):
    created = (await register(client, test_user, test_event.id, files=evidence_file(), payment_method="bank")).json()
    response = await client.get(f"/api/v1/admin/payment-evidence/{created['id']}", headers=manager_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_download_without_evidence(client: AsyncClient, test_user, test_event):
    created = (await register(client, test_user, test_event.id)).json()
    response = await client.get(
        f"/api/v1/users/payment-evidence/{created['id']}",
        headers=headers_for(test_user),
    )
    assert response.status_code == 404
    assert response.json()["field"] == "payment_evidence"
