"""Auth, error mapping and role checks over HTTP."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from .conftest import bearer


@pytest.mark.asyncio
async def test_register_login_and_me(client: AsyncClient, side_effects):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Riya Rao", "email": "riya@example.com", "password": "hunter22"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["principal"]["role"] == "user"

    resp = await client.post(
        "/api/auth/login", json={"email": "RIYA@example.com", "password": "hunter22"}
    )
    assert resp.status_code == 200
    token = resp.json()["token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "riya@example.com"

    out = await client.post("/api/auth/logout", headers={"Authorization": f"Bearer {token}"})
    assert out.status_code == 200


@pytest.mark.asyncio
async def test_missing_or_bad_token_is_401(client: AsyncClient):
    resp = await client.get("/api/tasks")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"
    assert resp.json() == {"kind": "unauthenticated", "message": "No token provided"}

    resp = await client.get("/api/tasks", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json()["kind"] == "unauthenticated"


@pytest.mark.asyncio
async def test_wrong_password_is_401(client: AsyncClient, user_c):
    resp = await client.post(
        "/api/auth/login", json={"email": user_c.email, "password": "not-it"}
    )
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_duplicate_registration_is_409(client: AsyncClient, user_c):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Copy", "email": user_c.email, "password": "hunter22"},
    )
    assert resp.status_code == 409
    assert resp.json()["kind"] == "conflict"


@pytest.mark.asyncio
async def test_request_validation_uses_the_error_taxonomy(client: AsyncClient, manager):
    resp = await client.post("/api/tasks", json={"title": "No body"}, headers=bearer(manager))
    assert resp.status_code == 400
    body = resp.json()
    assert body["kind"] == "validation_failed"
    fields = {err["field"] for err in body["errors"]}
    assert {"description", "category", "due_date", "assigned_to"} <= fields


@pytest.mark.asyncio
async def test_user_management_is_role_scoped(client: AsyncClient, admin, user_c, user_d):
    resp = await client.get("/api/users", headers=bearer(user_c))
    assert resp.status_code == 403
    assert resp.json()["kind"] == "forbidden"

    resp = await client.get("/api/users", headers=bearer(admin))
    assert resp.status_code == 200
    assert resp.json()["total"] == 3

    resp = await client.put(
        f"/api/users/{user_c.id}", json={"role": "admin"}, headers=bearer(user_c)
    )
    assert resp.status_code == 403

    resp = await client.delete(f"/api/users/{user_d.id}", headers=bearer(admin))
    assert resp.status_code == 200

    resp = await client.get("/api/auth/me", headers=bearer(user_d))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_profile_update(client: AsyncClient, user_c):
    resp = await client.put(
        "/api/auth/profile", json={"name": "Cara Updated"}, headers=bearer(user_c)
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Cara Updated"


@pytest.mark.asyncio
async def test_activity_log_is_privileged(client: AsyncClient, side_effects, manager, user_c):
    await client.post(
        "/api/auth/login", json={"email": user_c.email, "password": "password123"}
    )
    await side_effects.drain()

    assert (await client.get("/api/activity-logs", headers=bearer(user_c))).status_code == 403
    resp = await client.get(
        "/api/activity-logs", params={"action": "user-login"}, headers=bearer(manager)
    )
    assert resp.status_code == 200
    items = resp.json()["items"]
    assert [item["actor_id"] for item in items] == [str(user_c.id)]
