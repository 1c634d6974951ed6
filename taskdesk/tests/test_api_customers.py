"""Customer and call routes over HTTP."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from .conftest import bearer


def customer_payload(name: str = "Globex Industries", **overrides) -> dict:
    payload = {
        "company_name": name,
        "company_type": "Manufacturing",
        "tax_id": "27aapfu0939f1zv",
        "contacts": [
            {
                "name": "Hank Scorpio",
                "email": "Hank@Globex.com",
                "phone": "+14155550100",
                "designation": "CEO",
            }
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_customer_lifecycle(client: AsyncClient, manager, user_c):
    resp = await client.post("/api/customers", json=customer_payload(), headers=bearer(user_c))
    assert resp.status_code == 403

    resp = await client.post("/api/customers", json=customer_payload(), headers=bearer(manager))
    assert resp.status_code == 201
    created = resp.json()
    assert created["tax_id"] == "27AAPFU0939F1ZV"
    assert created["contacts"][0]["email"] == "hank@globex.com"
    assert created["contacts"][0]["is_primary"] is True
    assert created["creator"]["id"] == str(manager.id)

    resp = await client.post(
        "/api/customers", json=customer_payload("GLOBEX industries"), headers=bearer(manager)
    )
    assert resp.status_code == 409

    resp = await client.get("/api/customers", params={"search": "scorpio"}, headers=bearer(user_c))
    assert resp.json()["total"] == 1

    resp = await client.delete(f"/api/customers/{created['id']}", headers=bearer(manager))
    assert resp.status_code == 200
    resp = await client.get(f"/api/customers/{created['id']}", headers=bearer(manager))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_customer_field_errors_are_collected(client: AsyncClient, manager):
    bad_contact = {
        "name": "X",
        "email": "not-an-email",
        "phone": "abc",
        "designation": "Ops",
    }
    resp = await client.post(
        "/api/customers",
        json=customer_payload(tax_id="123", contacts=[bad_contact]),
        headers=bearer(manager),
    )
    assert resp.status_code == 400
    fields = {err["field"] for err in resp.json()["errors"]}
    assert fields == {"contacts.0.email", "contacts.0.phone", "tax_id"}


@pytest.mark.asyncio
async def test_calls_are_scoped_to_their_logger(client: AsyncClient, manager, user_c, user_d, customer):
    for actor, summary in ((user_c, "Intro call"), (user_d, "Pricing call")):
        resp = await client.post(
            "/api/calls",
            json={
                "customer_id": str(customer.id),
                "direction": "outbound",
                "summary": summary,
                "tags": ["sales", " sales ", "intro"],
            },
            headers=bearer(actor),
        )
        assert resp.status_code == 201
        assert resp.json()["tags"] == ["sales", "intro"]
        assert resp.json()["user"]["id"] == str(actor.id)

    resp = await client.get(f"/api/customers/{customer.id}/calls", headers=bearer(user_c))
    assert [c["summary"] for c in resp.json()] == ["Intro call"]

    resp = await client.get("/api/calls", headers=bearer(manager))
    assert resp.json()["total"] == 2

    call_id = (await client.get("/api/calls", headers=bearer(user_c))).json()["items"][0]["id"]
    assert (await client.get(f"/api/calls/{call_id}", headers=bearer(user_d))).status_code == 403
    assert (await client.delete(f"/api/calls/{call_id}", headers=bearer(user_c))).status_code == 403
    assert (await client.delete(f"/api/calls/{call_id}", headers=bearer(manager))).status_code == 200


@pytest.mark.asyncio
async def test_call_follow_up_needs_a_date(client: AsyncClient, user_c, customer):
    resp = await client.post(
        "/api/calls",
        json={
            "customer_id": str(customer.id),
            "direction": "inbound",
            "summary": "Asked for a demo",
            "follow_up_required": True,
        },
        headers=bearer(user_c),
    )
    assert resp.status_code == 400
    assert resp.json()["errors"] == [
        {
            "field": "follow_up_date",
            "reason": "Follow-up date is required when follow-up is needed",
        }
    ]
