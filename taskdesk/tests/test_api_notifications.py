"""Notification inbox, search and category routes over HTTP."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from .conftest import bearer


async def _create_task(client: AsyncClient, creator, assignee, due, title: str) -> dict:
    resp = await client.post(
        "/api/tasks",
        json={
            "title": title,
            "description": "Details to follow",
            "category": "Support",
            "due_date": due.isoformat(),
            "assigned_to": str(assignee.id),
        },
        headers=bearer(creator),
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_inbox_flow(client: AsyncClient, side_effects, manager, user_c, next_week):
    await _create_task(client, manager, user_c, next_week, "Fix login bug")
    await _create_task(client, manager, user_c, next_week, "Update docs")
    await side_effects.drain()

    resp = await client.get("/api/notifications/unread-count", headers=bearer(user_c))
    assert resp.json() == {"count": 2}

    resp = await client.get("/api/notifications", headers=bearer(user_c))
    items = resp.json()["items"]
    assert {item["kind"] for item in items} == {"new-task"}
    assert all(item["link"].startswith("/tasks/") for item in items)

    resp = await client.patch(f"/api/notifications/{items[0]['id']}/read", headers=bearer(manager))
    assert resp.status_code == 404

    resp = await client.patch(f"/api/notifications/{items[0]['id']}/read", headers=bearer(user_c))
    assert resp.json()["is_read"] is True

    resp = await client.patch("/api/notifications/read-all", headers=bearer(user_c))
    assert resp.json()["updated"] == 1
    resp = await client.get("/api/notifications/unread-count", headers=bearer(user_c))
    assert resp.json() == {"count": 0}


@pytest.mark.asyncio
async def test_search_endpoint(client: AsyncClient, manager, user_c, user_d, customer, next_week):
    await _create_task(client, manager, user_c, next_week, "TechCorp renewal")
    await _create_task(client, manager, user_d, next_week, "TechCorp audit")

    resp = await client.get(
        "/api/search", params={"q": "techcorp", "resources": "tasks,customers"}, headers=bearer(user_c)
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [t["title"] for t in body["tasks"]] == ["TechCorp renewal"]
    assert [c["company_name"] for c in body["customers"]] == ["TechCorp Solutions"]
    assert body["calls"] == []
    assert body["errors"] == {}

    resp = await client.get("/api/search", params={"q": "   "}, headers=bearer(user_c))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "q"

    resp = await client.get(
        "/api/search", params={"q": "x", "resources": "invoices"}, headers=bearer(user_c)
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_categories(client: AsyncClient, manager, user_c):
    resp = await client.post(
        "/api/task-categories", json={"name": "Support"}, headers=bearer(user_c)
    )
    assert resp.status_code == 403

    resp = await client.post(
        "/api/task-categories", json={"name": "Support"}, headers=bearer(manager)
    )
    assert resp.status_code == 201

    resp = await client.get("/api/task-categories", headers=bearer(user_c))
    assert [c["name"] for c in resp.json()] == ["Support"]
