"""Users API: admin-only listing and idempotent self-registration.

Pattern: test_<verb>_<noun>_<scenario>
"""

import asyncio

import pytest

from conftest import ADMIN_EMAIL, RENTER_EMAIL, bearer


@pytest.fixture
def users(fake_db):
    fake_db["users"].seed(email=ADMIN_EMAIL, name="Ada", role="admin")
    fake_db["users"].seed(email=RENTER_EMAIL, name="Rita", role="user")
    return fake_db["users"]


@pytest.mark.asyncio
async def test_list_users_requires_token(client, users):
    resp = await client.get("/users")
    assert resp.status_code == 401
    assert resp.json() == {"message": "unauthorized access"}
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_list_users_rejects_invalid_token(client, users):
    resp = await client.get("/users", headers=bearer("forged"))
    assert resp.status_code == 401
    assert resp.json() == {"message": "unauthorized access"}


@pytest.mark.asyncio
async def test_list_users_as_admin(client, users):
    resp = await client.get("/users", headers=bearer("admin-token"))
    assert resp.status_code == 200
    emails = [u["email"] for u in resp.json()]
    assert emails == [ADMIN_EMAIL, RENTER_EMAIL]
    assert all(isinstance(u["_id"], str) and len(u["_id"]) == 24 for u in resp.json())


@pytest.mark.asyncio
async def test_list_users_forbidden_for_ordinary_user(client, users):
    resp = await client.get("/users", headers=bearer("renter-token"))
    assert resp.status_code == 403
    assert resp.json() == {"message": "forbidden access"}


@pytest.mark.asyncio
async def test_list_users_forbidden_without_user_record(client, users):
    """A verified identity that never registered fails closed."""
    resp = await client.get("/users", headers=bearer("provider-token"))
    assert resp.status_code == 403
    assert resp.json() == {"message": "forbidden access"}


@pytest.mark.asyncio
async def test_create_user(client, fake_db):
    resp = await client.post("/users", json={"email": "new@rentwheels.io", "name": "Nia"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["acknowledged"] is True
    assert len(body["insertedId"]) == 24

    stored = fake_db["users"].documents
    assert len(stored) == 1
    assert stored[0]["email"] == "new@rentwheels.io"
    assert stored[0]["name"] == "Nia"
    assert stored[0]["role"] == "user"


@pytest.mark.asyncio
async def test_create_user_twice_is_idempotent(client, fake_db):
    payload = {"email": "twice@rentwheels.io", "name": "Tom"}
    first = await client.post("/users", json=payload)
    assert "insertedId" in first.json()

    second = await client.post("/users", json=payload)
    assert second.status_code == 200
    assert second.json() == {"message": "User already exists"}
    assert len(fake_db["users"].documents) == 1


@pytest.mark.asyncio
async def test_create_user_cannot_claim_admin_role(client, fake_db):
    await client.post("/users", json={"email": "sneaky@rentwheels.io", "role": "admin"})
    assert fake_db["users"].documents[0]["role"] == "user"


@pytest.mark.asyncio
async def test_create_user_requires_email(client, fake_db):
    resp = await client.post("/users", json={"name": "Nobody"})
    assert resp.status_code == 422
    assert fake_db["users"].documents == []


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["Bob@Example.COM", "dev@workstation.local"])
async def test_create_user_stores_email_verbatim(client, fake_db, email):
    """The stored email must compare equal to the token's email claim."""
    resp = await client.post("/users", json={"email": email})
    assert resp.status_code == 200
    assert fake_db["users"].documents[0]["email"] == email


@pytest.mark.asyncio
async def test_create_user_concurrent_first_sign_in(client, fake_db):
    payload = {"email": "race@rentwheels.io", "name": "Rae"}
    responses = await asyncio.gather(*[client.post("/users", json=payload) for _ in range(3)])

    bodies = [r.json() for r in responses]
    assert sum("insertedId" in body for body in bodies) == 1
    assert bodies.count({"message": "User already exists"}) == 2
    assert len(fake_db["users"].documents) == 1
