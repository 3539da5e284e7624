import pytest


PAYLOAD = {
    "recipient": "+15551234567",
    "origin_station": "A01",
    "destination": "Shady Grove",
    "notify_at": "08:15:00",
}


async def _create(client, **overrides):
    resp = await client.post("/subscriptions", json={**PAYLOAD, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_then_get_returns_same_fields(client):
    created = await _create(client)
    assert created["id"] >= 1
    assert created["created_at"]

    resp = await client.get(f"/subscriptions/{created['id']}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["ok"] is True
    assert data["data"] == created
    assert data["data"]["notify_at"] == "08:15:00"


@pytest.mark.asyncio
async def test_patch_changes_only_sent_fields(client):
    created = await _create(client)

    resp = await client.patch(f"/subscriptions/{created['id']}", json={"notify_at": "09:30"})
    assert resp.status_code == 200
    updated = resp.json()["data"]

    assert updated["notify_at"] == "09:30:00"
    for field in ("id", "recipient", "origin_station", "destination", "created_at"):
        assert updated[field] == created[field]

    fetched = (await client.get(f"/subscriptions/{created['id']}")).json()["data"]
    assert fetched == updated


@pytest.mark.asyncio
async def test_delete_then_get_is_not_found(client):
    created = await _create(client)

    resp = await client.delete(f"/subscriptions/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["deleted"] is True

    resp = await client.get(f"/subscriptions/{created['id']}")
    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Subscription not found"

    resp = await client.delete(f"/subscriptions/{created['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_missing_field_is_rejected_before_the_store(client, store):
    payload = dict(PAYLOAD)
    del payload["recipient"]

    resp = await client.post("/subscriptions", json=payload)

    assert resp.status_code == 422
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "validation_error"
    assert "recipient" in body["error"]["message"]
    assert store.subscriptions == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("field,value", [
    ("recipient", "not-a-phone"),
    ("notify_at", "25:00"),
    ("destination", ""),
])
async def test_invalid_values_are_rejected(client, field, value):
    resp = await client.post("/subscriptions", json={**PAYLOAD, field: value})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_patch_edge_cases(client):
    created = await _create(client)

    resp = await client.patch(f"/subscriptions/{created['id']}", json={})
    assert resp.status_code == 400

    resp = await client.patch(f"/subscriptions/{created['id']}", json={"destination": None})
    assert resp.status_code == 422

    resp = await client.patch("/subscriptions/999", json={"destination": "Glenmont"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_is_ordered_and_paginated(client):
    ids = [(await _create(client, recipient=f"+1555000000{n}"))["id"] for n in range(5)]

    resp = await client.get("/subscriptions", params={"limit": 2, "offset": 1})
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["data"]] == ids[1:3]

    resp = await client.get("/subscriptions", params={"limit": 0})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_due_endpoint_uses_minute_truncation(client):
    first = await _create(client, notify_at="09:00:00")
    second = await _create(client, notify_at="09:00:00", recipient="+15559876543")
    await _create(client, notify_at="09:01:00")

    resp = await client.get("/subscriptions/due", params={"at": "09:00:59"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["minute"] == "09:00"
    assert [s["id"] for s in data["subscriptions"]] == [first["id"], second["id"]]


@pytest.mark.asyncio
async def test_manual_tick_sends_due_reminders(client, sender):
    await _create(client, notify_at="07:45")

    resp = await client.post("/admin/scheduler/tick", params={"at": "07:45"})
    assert resp.status_code == 200
    report = resp.json()["data"]
    assert report["matched"] == 1
    assert report["delivered"] == 1
    assert sender.calls == [("+15551234567", "Reminder: upcoming train to Shady Grove")]

    recent = (await client.get("/admin/notifications/recent")).json()["data"]
    assert recent[-1]["recipient"] == "+15551234567"
    assert recent[-1]["ok"] is True


@pytest.mark.asyncio
async def test_scheduler_admin_start_stop(client):
    status = (await client.get("/admin/scheduler")).json()["data"]
    assert status["running"] is False

    resp = await client.post("/admin/scheduler/start")
    assert resp.json()["data"]["running"] is True
    resp = await client.post("/admin/scheduler/start")
    assert resp.json()["data"]["running"] is True

    resp = await client.post("/admin/scheduler/stop")
    assert resp.json()["data"]["running"] is False


@pytest.mark.asyncio
async def test_health_and_ready(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")

    resp = await client.get("/ready")
    assert resp.json()["data"] == {"ready": True, "store": "memory"}


@pytest.mark.asyncio
@pytest.mark.parametrize("notify_at", ["08:00:00+02:00", "08:00:00Z"])
async def test_notify_at_with_utc_offset_is_rejected(client, store, sender, notify_at):
    await _create(client, notify_at="08:00")

    resp = await client.post("/subscriptions", json={**PAYLOAD, "notify_at": notify_at})
    assert resp.status_code == 422
    assert "notify_at" in resp.json()["error"]["message"]

    resp = await client.patch("/subscriptions/1", json={"notify_at": notify_at})
    assert resp.status_code == 422

    # the stored subscription is still matched and texted
    report = (await client.post("/admin/scheduler/tick", params={"at": "08:00"})).json()["data"]
    assert report["store_error"] is None
    assert report["delivered"] == 1
    assert len(store.subscriptions) == 1
    assert len(sender.calls) == 1
