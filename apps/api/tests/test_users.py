"""Tests for registration, login, and role administration."""
import pytest
from httpx import AsyncClient

from bugtracker.db.enums import Role
from bugtracker.db.models import Activity
from bugtracker.core.security import decode_access_token


@pytest.mark.asyncio
async def test_register_returns_member_with_token(client: AsyncClient, db):
    response = await client.post(
        "/users/register",
        json={"name": "Dana", "email": "Dana@Example.COM", "password": "secret123"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "dana@example.com"
    assert data["role"] == "member"
    assert "password" not in data and "password_hash" not in data
    assert decode_access_token(data["token"])["sub"] == data["id"]

    activities = db.query(Activity).all()
    assert [a.action for a in activities] == ["registered as a new user"]


@pytest.mark.asyncio
async def test_register_duplicate_email_is_rejected(client: AsyncClient, alice):
    response = await client.post(
        "/users/register",
        json={"name": "Other", "email": alice.user.email.upper(), "password": "secret123"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"


@pytest.mark.asyncio
async def test_register_validation_errors_are_joined(client: AsyncClient):
    response = await client.post("/users/register", json={"email": "not-an-email"})
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "name" in detail and "password" in detail and "email" in detail
    assert ", " in detail


@pytest.mark.asyncio
async def test_login_success_and_failure(client: AsyncClient, alice):
    ok = await client.post(
        "/users/login", json={"email": alice.user.email, "password": "password123"}
    )
    assert ok.status_code == 200
    assert ok.json()["id"] == str(alice.user.id)

    bad = await client.post(
        "/users/login", json={"email": alice.user.email, "password": "wrong-password"}
    )
    assert bad.status_code == 401

    unknown = await client.post(
        "/users/login", json={"email": "nobody@example.com", "password": "password123"}
    )
    assert unknown.status_code == 401
    assert unknown.json()["detail"] == bad.json()["detail"]


@pytest.mark.asyncio
async def test_me_requires_bearer_token(client: AsyncClient, alice):
    assert (await client.get("/users/me")).status_code == 401
    garbage = await client.get("/users/me", headers={"Authorization": "Bearer nope"})
    assert garbage.status_code == 401

    response = await client.get("/users/me", headers=alice.headers)
    assert response.status_code == 200
    assert response.json()["email"] == alice.user.email


@pytest.mark.asyncio
async def test_list_users_is_admin_only(client: AsyncClient, alice, admin):
    assert (await client.get("/users/", headers=alice.headers)).status_code == 403

    response = await client.get("/users/", headers=admin.headers)
    assert response.status_code == 200
    emails = {u["email"] for u in response.json()}
    assert {alice.user.email, admin.user.email} <= emails


@pytest.mark.asyncio
async def test_admin_changes_other_users_role(client: AsyncClient, db, alice, admin):
    response = await client.put(
        f"/users/{alice.user.id}/role", json={"role": "admin"}, headers=admin.headers
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    db.expire_all()
    assert alice.user.role == Role.ADMIN.value
    actions = [a.action for a in db.query(Activity).all()]
    assert "changed role of Alice to admin" in actions


@pytest.mark.asyncio
async def test_admin_cannot_change_own_role(client: AsyncClient, admin):
    response = await client.put(
        f"/users/{admin.user.id}/role", json={"role": "member"}, headers=admin.headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == (
        "Admins cannot change their own role through this interface."
    )


@pytest.mark.asyncio
async def test_role_update_edge_cases(client: AsyncClient, alice, bob, admin):
    forbidden = await client.put(
        f"/users/{bob.user.id}/role", json={"role": "admin"}, headers=alice.headers
    )
    assert forbidden.status_code == 403

    missing = await client.put(
        "/users/not-a-uuid/role", json={"role": "admin"}, headers=admin.headers
    )
    assert missing.status_code == 404

    bad_role = await client.put(
        f"/users/{bob.user.id}/role", json={"role": "superuser"}, headers=admin.headers
    )
    assert bad_role.status_code == 400
