import pytest
from httpx import AsyncClient

from tests.utils.api import signup


@pytest.mark.asyncio
async def test_me_returns_profile(client: AsyncClient):
    user_id, headers = await signup(client, "user@acme.com")

    response = await client.get("/me", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(user_id)
    assert data["email"] == "user@acme.com"
    assert data["username"] is None
    assert data["email_verified"] is False


@pytest.mark.asyncio
async def test_invalid_jwt(client: AsyncClient):
    response = await client.get("/me", headers={"Authorization": "Bearer invalid_token_here"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_jwt(client: AsyncClient):
    response = await client.get("/me")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_security_events_list_own_actions(client: AsyncClient):
    """Signup and username claim show up newest first"""
    _, headers = await signup(client, "user@acme.com")
    await client.post("/profile/username/claim", json={"username": "user1"}, headers=headers)

    response = await client.get("/me/security-events", headers=headers)

    assert response.status_code == 200
    actions = [e["action"] for e in response.json()["events"]]
    assert actions[0] == "username_claimed"
    assert "signup" in actions
