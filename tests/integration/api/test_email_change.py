"""
Email change through verification of the new address, end to end.
"""
import pytest
from httpx import AsyncClient

from tests.utils.api import signup


@pytest.mark.asyncio
async def test_verified_email_change(client: AsyncClient, outbox):
    _, headers = await signup(client, "old@example.com")

    response = await client.post("/profile/email/change", json={"new_email": "New@Example.com"}, headers=headers)

    assert response.status_code == 202
    data = response.json()
    assert data["new_email"] == "new@example.com"
    assert data["expires_in_minutes"] == 30

    recipients = [to for to, _ in outbox.sent]
    assert recipients == ["new@example.com", "old@example.com"]
    token = outbox.last_token("new@example.com")

    confirm = await client.post("/verify/email", json={"token": token}, headers=headers)
    assert confirm.status_code == 200
    assert confirm.json()["email"] == "new@example.com"

    me = (await client.get("/me", headers=headers)).json()
    assert me["email"] == "new@example.com"
    assert me["email_verified"] is True

    login = await client.post("/auth/login", json={"email": "new@example.com", "password": "SecurePass123!"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_email_in_use_conflicts(client: AsyncClient):
    await signup(client, "taken@example.com")
    _, headers = await signup(client, "old@example.com")

    response = await client.post("/profile/email/change", json={"new_email": "taken@example.com"}, headers=headers)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_username_token_cannot_confirm_email(client: AsyncClient, outbox):
    _, headers = await signup(client, "old@example.com")
    await client.post("/profile/username/claim", json={"username": "owner"}, headers=headers)
    await client.post("/profile/username/change", json={"username": "owner2"}, headers=headers)
    token = outbox.last_token()

    response = await client.post("/verify/email", json={"token": token}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_invalid_email_rejected(client: AsyncClient, outbox):
    _, headers = await signup(client, "old@example.com")

    response = await client.post("/profile/email/change", json={"new_email": "a..b@example.com"}, headers=headers)

    assert response.status_code == 400
    assert outbox.sent == []


@pytest.mark.asyncio
async def test_email_quota_endpoint(client: AsyncClient):
    _, headers = await signup(client, "old@example.com")
    await client.post("/profile/email/change", json={"new_email": "new@example.com"}, headers=headers)

    response = await client.get("/profile/email/rate-limit", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 5
    assert data["remaining"] == 4
    assert data["is_new_user"] is True
