"""
Tests for registration fees: delegate-type pricing, add-on packages, the
quote endpoint and the fee stored on new registrations.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.core.errors import ValidationError
from app.models.registration import DelegateType
from app.services.pricing import PackageSelection, quote
from conftest import fetch_registrations, headers_for, registration_form


# --- Fee schedule ---

@pytest.mark.parametrize("delegate_type,currency,base", [
    (DelegateType.PRIVATE, "ZMW", Decimal("7000")),
    (DelegateType.PUBLIC, "ZMW", Decimal("6500")),
    (DelegateType.INTERNATIONAL, "USD", Decimal("650")),
])
def test_base_fee_by_delegate_type(delegate_type, currency, base):
    fee = quote(delegate_type)
    assert fee.currency == currency
    assert fee.total == base
    assert fee.items == []


def test_international_with_every_package():
    fee = quote(
        DelegateType.INTERNATIONAL,
        PackageSelection(accommodation=True, victoria_falls=True, boat_cruise=True, dinner_gala=True),
    )
    assert fee.items == [
        ("accommodation", Decimal("150")),
        ("victoria_falls_boat_cruise", Decimal("150")),
        ("dinner_gala", Decimal("110")),
    ]
    assert fee.total == Decimal("1060")


def test_excursion_is_charged_once_for_either_choice():
    falls = quote(DelegateType.PUBLIC, PackageSelection(victoria_falls=True))
    cruise = quote(DelegateType.PUBLIC, PackageSelection(boat_cruise=True))
    assert falls.total == cruise.total == Decimal("9000")


def test_local_delegate_cannot_book_accommodation():
    with pytest.raises(ValidationError) as exc:
        quote(DelegateType.PRIVATE, PackageSelection(accommodation=True))
    assert exc.value.field == "accommodation_package"


def test_no_delegate_type_pays_event_price():
    fee = quote(None, event_price=Decimal("150.00"))
    assert fee.currency == "ZMW"
    assert fee.total == Decimal("150.00")


def test_no_delegate_type_rejects_packages():
    with pytest.raises(ValidationError) as exc:
        quote(None, PackageSelection(dinner_gala=True), event_price=Decimal("150.00"))
    assert exc.value.field == "delegate_type"


# --- Quote endpoint ---

@pytest.mark.asyncio
async def test_quote_endpoint(client: AsyncClient, test_event):
    response = await client.get(
        f"/api/v1/events/{test_event.id}/quote",
        params={"delegate_type": "private", "dinner_gala_attendance": "true"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "ZMW"
    assert Decimal(data["base_price"]) == Decimal("7000")
    assert [item["name"] for item in data["items"]] == ["dinner_gala"]
    assert Decimal(data["total"]) == Decimal("9500")


@pytest.mark.asyncio
async def test_quote_endpoint_rejects_unknown_delegate_type(client: AsyncClient, test_event):
    response = await client.get(f"/api/v1/events/{test_event.id}/quote", params={"delegate_type": "vip"})
    assert response.status_code == 400
    assert response.json()["field"] == "delegate_type"


@pytest.mark.asyncio
async def test_quote_unknown_event(client: AsyncClient):
    response = await client.get("/api/v1/events/9999/quote")
    assert response.status_code == 404


# --- Stored fee ---

@pytest.mark.asyncio
async def test_registration_stores_quoted_fee(client: AsyncClient, test_user, test_event):
    response = await client.post(
        "/api/v1/events/register",
        data=registration_form(
            test_user.id,
            test_event.id,
            delegate_type="international",
            accommodation_package=True,
            boat_cruise_package=True,
        ),
        headers=headers_for(test_user),
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["currency"] == "USD"
    assert Decimal(data["price_paid"]) == Decimal("950")
    assert data["accommodation_package"] is True
    assert data["boat_cruise_package"] is True
    assert data["victoria_falls_package"] is False


@pytest.mark.asyncio
async def test_registration_rejects_accommodation_for_local_delegate(
    client: AsyncClient, test_user, test_event, session_factory
):
    response = await client.post(
        "/api/v1/events/register",
        data=registration_form(test_user.id, test_event.id, accommodation_package=True),
        headers=headers_for(test_user),
    )
    assert response.status_code == 400
    assert response.json()["field"] == "accommodation_package"
    assert await fetch_registrations(session_factory, user_id=test_user.id) == []


@pytest.mark.asyncio
async def test_admin_can_override_price(client: AsyncClient, admin_headers, test_user, test_event):
    response = await client.post(
        "/api/v1/admin/events/register",
        data=registration_form(test_user.id, test_event.id, price_paid="5000.00"),
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["currency"] == "ZMW"
    assert Decimal(data["price_paid"]) == Decimal("5000")


@pytest.mark.asyncio
async def test_self_registration_ignores_price_override(client: AsyncClient, test_user, test_event):
    response = await client.post(
        "/api/v1/events/register",
        data=registration_form(test_user.id, test_event.id, price_paid="1.00"),
        headers=headers_for(test_user),
    )
    assert response.status_code == 201
    assert Decimal(response.json()["price_paid"]) == Decimal("7000")
