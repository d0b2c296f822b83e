"""
Tests for sponsorship and exhibition applications and the partner showcase.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient


def sponsorship_payload(event_id: int, **overrides):
    payload = {
        "event_id": event_id,
        "company_name": "Zambezi Pharma",
        "contact_person": "Mary Phiri",
        "email": "mary@zambezipharma.com",
        "phone_number": "+260977123456",
        "website": "https://zambezipharma.com",
        "sponsorship_level": "gold",
        "amount": "15000.00",
    }
    payload.update(overrides)
    return payload


def exhibition_payload(event_id: int, **overrides):
    payload = {
        "event_id": event_id,
        "company_name": "MedTech Ltd",
        "contact_person": "John Banda",
        "email": "john@medtech.co.zm",
        "phone_number": "+260966000111",
        "products_services": "Diagnostic equipment",
    }
    payload.update(overrides)
    return payload


async def submit(client, path, payload):
    response = await client.post(path, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# --- Submission ---

@pytest.mark.asyncio
async def test_submit_sponsorship(client: AsyncClient, test_event):
    data = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id))
    assert data["status"] == "pending"
    assert data["payment_status"] == "pending"
    assert data["currency"] == "USD"
    assert data["sponsorship_level"] == "gold"
    assert Decimal(data["amount"]) == Decimal("15000")


@pytest.mark.asyncio
async def test_submit_exhibition_defaults(client: AsyncClient, test_event):
    data = await submit(client, "/api/v1/exhibitions", exhibition_payload(test_event.id))
    assert data["booth_size"] == "standard"
    assert Decimal(data["amount"]) == Decimal("7000")
    assert data["status"] == "pending"


@pytest.mark.asyncio
async def test_submit_for_unknown_event(client: AsyncClient):
    response = await client.post("/api/v1/sponsorships", json=sponsorship_payload(9999))
    assert response.status_code == 404
    assert response.json()["field"] == "event_id"


@pytest.mark.asyncio
async def test_submit_sponsorship_rejects_unknown_level(client: AsyncClient, test_event):
    response = await client.post("/api/v1/sponsorships", json=sponsorship_payload(test_event.id, sponsorship_level="diamond"))
    assert response.status_code == 400
    assert response.json()["field"] == "sponsorship_level"


@pytest.mark.asyncio
async def test_submit_sponsorship_requires_amount(client: AsyncClient, test_event):
    payload = sponsorship_payload(test_event.id)
    del payload["amount"]
    response = await client.post("/api/v1/sponsorships", json=payload)
    assert response.status_code == 400
    assert response.json()["field"] == "amount"


# --- Review ---

@pytest.mark.asyncio
async def test_admin_lists_sponsorships_with_event(client: AsyncClient, finance_headers, test_event):
    first = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id))
    second = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id, company_name="Copperbelt Bank"))

    response = await client.get("/api/v1/admin/sponsorships", headers=finance_headers)
    assert response.status_code == 200
    data = response.json()
    assert [s["id"] for s in data] == [second["id"], first["id"]]
    assert data[0]["event"]["title"] == "Health Summit"


@pytest.mark.asyncio
async def test_listing_requires_admin_role(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/admin/exhibitions", headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_review_sponsorship(client: AsyncClient, finance_headers, test_event):
    created = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id))

    response = await client.patch(
        f"/api/v1/admin/sponsorships/{created['id']}",
        json={"status": "approved"},
        headers=finance_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["payment_status"] == "pending"

    response = await client.patch(
        f"/api/v1/admin/sponsorships/{created['id']}",
        json={"status": "paid", "payment_status": "paid"},
        headers=finance_headers,
    )
    assert response.json()["status"] == "paid"
    assert response.json()["payment_status"] == "paid"


@pytest.mark.asyncio
async def test_review_exhibition_by_event_manager(client: AsyncClient, manager_headers, test_event):
    created = await submit(client, "/api/v1/exhibitions", exhibition_payload(test_event.id))
    response = await client.patch(
        f"/api/v1/admin/exhibitions/{created['id']}",
        json={"status": "rejected"},
        headers=manager_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "rejected"


@pytest.mark.asyncio
async def test_review_rejects_unknown_status(client: AsyncClient, finance_headers, test_event):
    created = await submit(client, "/api/v1/exhibitions", exhibition_payload(test_event.id))
    response = await client.patch(
        f"/api/v1/admin/exhibitions/{created['id']}",
        json={"status": "archived"},
        headers=finance_headers,
    )
    assert response.status_code == 400
    assert response.json()["field"] == "status"


@pytest.mark.asyncio
async def test_review_unknown_application(client: AsyncClient, finance_headers):
    response = await client.patch("/api/v1/admin/sponsorships/9999", json={"status": "approved"}, headers=finance_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_review_forbidden_for_ordinary_user(client: AsyncClient, auth_headers, test_event):
    created = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id))
    response = await client.patch(
        f"/api/v1/admin/sponsorships/{created['id']}",
        json={"status": "approved"},
        headers=auth_headers,
    )
    assert response.status_code == 403


# --- Showcase ---

@pytest.mark.asyncio
async def test_showcase_lists_only_approved_in_rank_order(client: AsyncClient, admin_headers, test_event):
    bronze = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id, company_name="Bronze Co", sponsorship_level="bronze"))
    platinum = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id, company_name="Platinum Co", sponsorship_level="platinum"))
    await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id, company_name="Pending Co"))
    standard = await submit(client, "/api/v1/exhibitions", exhibition_payload(test_event.id, company_name="Standard Booth"))
    premium = await submit(client, "/api/v1/exhibitions", exhibition_payload(test_event.id, company_name="Premium Booth", booth_size="premium"))

    for kind, application in (
        ("sponsorships", bronze), ("sponsorships", platinum), ("exhibitions", standard), ("exhibitions", premium),
    ):
        await client.patch(f"/api/v1/admin/{kind}/{application['id']}", json={"status": "approved"}, headers=admin_headers)

    response = await client.get("/api/v1/partners")
    assert response.status_code == 200
    data = response.json()
    assert [s["company_name"] for s in data["sponsors"]] == ["Platinum Co", "Bronze Co"]
    assert [e["company_name"] for e in data["exhibitors"]] == ["Premium Booth", "Standard Booth"]
    assert "email" not in data["sponsors"][0]


@pytest.mark.asyncio
async def test_showcase_filters_by_event(client: AsyncClient, admin_headers, test_event, single_spot_event):
    created = await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id))
    await client.patch(f"/api/v1/admin/sponsorships/{created['id']}", json={"status": "approved"}, headers=admin_headers)

    data = (await client.get("/api/v1/partners", params={"event_id": single_spot_event.id})).json()
    assert data == {"sponsors": [], "exhibitors": []}


@pytest.mark.asyncio
async def test_deleting_event_removes_applications(client: AsyncClient, admin_headers, test_event):
    await submit(client, "/api/v1/sponsorships", sponsorship_payload(test_event.id))
    await submit(client, "/api/v1/exhibitions", exhibition_payload(test_event.id))

    response = await client.delete(f"/api/v1/admin/events/{test_event.id}", headers=admin_headers)
    assert response.status_code == 200
    assert (await client.get("/api/v1/admin/sponsorships", headers=admin_headers)).json() == []
    assert (await client.get("/api/v1/admin/exhibitions", headers=admin_headers)).json() == []
