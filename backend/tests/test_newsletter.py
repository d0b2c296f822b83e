import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_subscribe(client: AsyncClient):
    response = await client.post(
        "/api/v1/newsletter/subscribe",
        json={"email": "reader@example.com", "name": "Reader"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Subscribed successfully"
    assert data["subscription"]["email"] == "reader@example.com"
    assert data["subscription"]["name"] == "Reader"


@pytest.mark.asyncio
async def test_subscribe_twice_is_not_an_error(client: AsyncClient):
    first = await client.post("/api/v1/newsletter/subscribe", json={"email": "reader@example.com"})
    second = await client.post("/api/v1/newsletter/subscribe", json={"email": "Reader@Example.com"})

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["message"] == "Already subscribed"
    assert second.json()["subscription"]["id"] == first.json()["subscription"]["id"]


@pytest.mark.asyncio
async def test_subscribe_invalid_email(client: AsyncClient):
    response = await client.post("/api/v1/newsletter/subscribe", json={"email": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["field"] == "email"
