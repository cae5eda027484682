from datetime import timedelta
from uuid import UUID

from src.domain.base import utcnow
from src.domain.entities import User


async def signup(client, email, password="SecurePass123!"):
    """Create an account through the API; returns (user_id, auth headers)"""
    response = await client.post("/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    data = response.json()
    return UUID(data["user"]["id"]), {"Authorization": f"Bearer {data['access_token']}"}


async def age_account(db_session, user_id, days=30):
    """Move an account out of the new-user window"""
    user = await db_session.get(User, user_id)
    user.created_at = utcnow() - timedelta(days=days)
    db_session.add(user)
    await db_session.commit()


async def claim(client, headers, username):
    response = await client.post("/profile/username/claim", json={"username": username}, headers=headers)
    assert response.status_code == 200, response.text
