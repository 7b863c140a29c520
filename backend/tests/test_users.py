"""
User and Role Tests.
"""

import pytest

from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.services.audit import AuditAction, get_audit_trail
from backend.tests.factories import auth_headers


@pytest.mark.asyncio
async def test_register_user(client):
    response = await client.post("/v1/users", json={"email": "new@example.com", "display_name": "New User"})

    assert response.status_code == 201
    assert response.json()["role"] == "user"


@pytest.mark.asyncio
async def test_register_existing_user(client):
    await client.post("/v1/users", json={"email": "new@example.com"})
    response = await client.post("/v1/users", json={"email": "new@example.com"})

    assert response.status_code == 200
    assert response.json() == {"message": "user exists"}


@pytest.mark.asyncio
async def test_role_lookup(client, admin_user):
    response = await client.get(f"/v1/users/{admin_user.email}/role")
    assert response.json() == {"role": "admin"}

    response = await client.get("/v1/users/nobody@example.com/role")
    assert response.json() == {"role": "user"}


@pytest.mark.asyncio
async def test_search_users(client):
    await client.post("/v1/users", json={"email": "alice@example.com", "display_name": "Alice Smith"})
    await client.post("/v1/users", json={"email": "bob@example.com", "display_name": "Bob Jones"})

    headers = auth_headers("alice@example.com")

    response = await client.get("/v1/users", params={"search_text": "smith"}, headers=headers)
    assert [u["email"] for u in response.json()] == ["alice@example.com"]

    response = await client.get("/v1/users", params={"search_text": "BOB@"}, headers=headers)
    assert [u["email"] for u in response.json()] == ["bob@example.com"]


@pytest.mark.asyncio
async def test_admin_changes_role(client, admin_user, db_session):
    created = await client.post("/v1/users", json={"email": "promote@example.com"})
    user_id = created.json()["id"]

    response = await client.patch(
        f"/v1/users/{user_id}/role", json={"role": "admin"}, headers=auth_headers(admin_user.email)
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    trail = await get_audit_trail(db_session, target_type="user", target_id=user_id, action=AuditAction.ROLE_CHANGED)
    assert len(trail) == 1
    audit = trail[0]
    assert audit.actor_email == admin_user.email
    assert audit.target_id == user_id
    assert audit.meta_data == {"from": "user", "to": "admin"}


@pytest.mark.asyncio
async def test_role_change_requires_admin(client, admin_user, db_session):
    created = await client.post("/v1/users", json={"email": "plain@example.com"})
    user_id = created.json()["id"]

    response = await client.patch(f"/v1/users/{user_id}/role", json={"role": "admin"})
    assert response.status_code == 401

    response = await client.patch(
        f"/v1/users/{user_id}/role", json={"role": "admin"}, headers=auth_headers("plain@example.com")
    )
    assert response.status_code == 403
    assert response.json()["error_kind"] == "Forbidden"

    user = await db_session.get(User, user_id)
    assert user.role == UserRole.USER


@pytest.mark.asyncio
async def test_role_change_unknown_user(client, admin_user):
    response = await client.patch(
        "/v1/users/999/role", json={"role": "rider"}, headers=auth_headers(admin_user.email)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search_requires_token(client):
    response = await client.get("/v1/users", params={"search_text": "a"})

    assert response.status_code == 401
    assert response.json()["error_kind"] == "Unauthorized"
