"""
Tests for the admin dashboard endpoints: users, registrations and newsletter.
"""

import pytest
from httpx import AsyncClient

from conftest import headers_for, registration_form


async def admin_register(client, headers, user, event_id, **overrides):
    response = await client.post(
        "/api/v1/admin/events/register",
        data=registration_form(user.id, event_id, **overrides),
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


# --- Users ---

@pytest.mark.asyncio
async def test_super_admin_creates_user_with_role(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/admin/users",
        json={
            "email": "Cashier@Example.com",
            "password": "securepassword123",
            "first_name": "Cash",
            "last_name": "Ier",
            "role": "finance_person",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "finance_person"
    assert data["email"] == "cashier@example.com"

    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "cashier@example.com", "password": "securepassword123"},
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_create_user_rejects_unknown_role(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/admin/users",
        json={
            "email": "x@example.com",
            "password": "securepassword123",
            "first_name": "X",
            "last_name": "Y",
            "role": "owner",
        },
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["field"] == "role"


@pytest.mark.asyncio
async def test_list_users_with_stats(client: AsyncClient, admin_headers, test_user, finance_user, test_event):
    registered = await client.post(
        "/api/v1/events/register",
        data=registration_form(
            test_user.id, test_event.id, payment_method="org_paid", organization_reference="MOH-PO-2291",
        ),
        headers=headers_for(test_user),
    )
    assert registered.status_code == 201, registered.text

    response = await client.get("/api/v1/admin/users", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()

    assert data["stats"]["total_users"] == 3
    assert data["stats"]["role_distribution"] == {
        "super_admin": 1,
        "finance_person": 1,
        "event_manager": 0,
        "ordinary_user": 1,
    }

    by_email = {u["email"]: u for u in data["users"]}
    assert by_email["test@example.com"]["total_registrations"] == 1
    assert by_email["test@example.com"]["active_registrations"] == 1
    assert by_email["test@example.com"]["paid_registrations"] == 1
    assert by_email["finance@example.com"]["total_registrations"] == 0
    assert "hashed_password" not in by_email["test@example.com"]


@pytest.mark.asyncio
async def test_update_role(client: AsyncClient, admin_headers, test_user):
    response = await client.patch(
        f"/api/v1/admin/users/{test_user.id}/role",
        json={"role": "event_manager"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "event_manager"


@pytest.mark.asyncio
async def test_cannot_change_own_role(client: AsyncClient, admin_headers, super_admin):
    response = await client.patch(
        f"/api/v1/admin/users/{super_admin.id}/role",
        json={"role": "ordinary_user"},
        headers=admin_headers,
    )
    assert response.status_code == 403
    assert response.json() == {"message": "Cannot change your own role", "field": "role"}


@pytest.mark.asyncio
async def test_update_role_unknown_user(client: AsyncClient, admin_headers):
    response = await client.patch(
        "/api/v1/admin/users/9999/role",
        json={"role": "event_manager"},
        headers=admin_headers,
    )
    assert response.status_code == 404


# --- Registrations ---

@pytest.mark.asyncio
async def test_list_registrations_with_stats(
    client: AsyncClient, admin_headers, finance_headers, test_user, other_user, test_event, single_spot_event
):
    paid = await admin_register(client, admin_headers, test_user, test_event.id, payment_status="paid")
    await admin_register(client, admin_headers, other_user, test_event.id)
    cancelled = await admin_register(client, admin_headers, test_user, single_spot_event.id)
    await client.patch(
        f"/api/v1/admin/registrations/{cancelled['id']}",
        json={"payment_status": "cancelled"},
        headers=finance_headers,
    )

    response = await client.get("/api/v1/admin/registrations", headers=finance_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["stats"] == {"total": 3, "pending": 1, "paid": 1, "completed": 0, "cancelled": 1, "failed": 0}
    assert data["pagination"] == {"page": 1, "limit": 50, "total": 3, "pages": 1}

    response = await client.get(
        "/api/v1/admin/registrations",
        params={"status": "paid"},
        headers=finance_headers,
    )
    data = response.json()
    assert [r["id"] for r in data["registrations"]] == [paid["id"]]
    assert data["pagination"]["total"] == 1

    response = await client.get(
        "/api/v1/admin/registrations",
        params={"event_id": test_event.id, "user_id": other_user.id},
        headers=finance_headers,
    )
    assert len(response.json()["registrations"]) == 1


@pytest.mark.asyncio
async def test_list_registrations_pagination(client: AsyncClient, admin_headers, db_session, test_event):
    from conftest import _create_user
    from app.core.permissions import Role

    for i in range(5):
        user = await _create_user(db_session, f"bulk{i}@example.com", Role.ORDINARY)
        await admin_register(client, admin_headers, user, test_event.id)

    response = await client.get(
        "/api/v1/admin/registrations",
        params={"page": 3, "limit": 2},
        headers=admin_headers,
    )
    data = response.json()
    assert len(data["registrations"]) == 1
    assert data["pagination"] == {"page": 3, "limit": 2, "total": 5, "pages": 3}
    assert data["stats"]["total"] == 5


@pytest.mark.asyncio
async def test_list_registrations_rejects_unknown_status(client: AsyncClient, admin_headers):
    response = await client.get(
        "/api/v1/admin/registrations",
        params={"status": "refunded"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["field"] == "status"


# --- Newsletter ---

@pytest.mark.asyncio
async def test_newsletter_list(client: AsyncClient, admin_headers):
    for email in ("a@example.com", "b@example.com"):
        await client.post("/api/v1/newsletter/subscribe", json={"email": email})

    response = await client.get("/api/v1/admin/newsletter-subscriptions", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["recent_subscriptions"] == 2
    assert {s["email"] for s in data["subscriptions"]} == {"a@example.com", "b@example.com"}


@pytest.mark.asyncio
async def test_newsletter_list_requires_super_admin(client: AsyncClient, finance_headers):
    response = await client.get("/api/v1/admin/newsletter-subscriptions", headers=finance_headers)
    assert response.status_code == 403
