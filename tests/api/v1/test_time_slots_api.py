# tests/api/v1/test_time_slots_api.py

import pytest

from tests.utils.event import create_event_with_slot


@pytest.fixture
def seeded_slot(session_factory):
    with session_factory() as db:
        event, slot = create_event_with_slot(db, max_capacity=3)
    return event, slot


def _join_as(client, current_user, user_id, event, slot):
    current_user.login(user_id)
    return client.post("/api/v1/queues", json={"eventId": event.id, "timeSlotId": slot.id}).json()


def test_call_next_requires_admin(test_client, seeded_slot):
    _, slot = seeded_slot

    response = test_client.post(f"/api/v1/timeSlots/{slot.id}/callNext")

    assert response.status_code == 403


def test_call_next_in_order(test_client, current_user, seeded_slot, notifier):
    event, slot = seeded_slot
    first = _join_as(test_client, current_user, "user_a", event, slot)
    second = _join_as(test_client, current_user, "user_b", event, slot)
    notifier.reset_mock()

    current_user.login("admin_1", role="admin")
    called = test_client.post(f"/api/v1/timeSlots/{slot.id}/callNext")

    assert called.status_code == 200
    assert called.json()["id"] == first["id"]
    assert called.json()["status"] == "called"
    notifier.notify.assert_called_once()
    assert notifier.notify.call_args.args[0] == "user_a"

    assert test_client.post(f"/api/v1/timeSlots/{slot.id}/callNext").json()["id"] == second["id"]

    summary = test_client.get(f"/api/v1/timeSlots/{slot.id}/summary").json()
    assert summary["current_count"] == 0
    assert summary["available_count"] == 3


def test_call_next_on_empty_slot(test_client, current_user, seeded_slot):
    _, slot = seeded_slot
    current_user.login("admin_1", role="admin")

    response = test_client.post(f"/api/v1/timeSlots/{slot.id}/callNext")

    assert response.status_code == 204
    assert response.content == b""


def test_call_next_unknown_slot(test_client, current_user):
    current_user.login("admin_1", role="admin")

    response = test_client.post("/api/v1/timeSlots/slot_missing/callNext")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SLOT_NOT_FOUND"


def test_close_and_reopen_slot(test_client, current_user, seeded_slot):
    event, slot = seeded_slot
    current_user.login("admin_1", role="admin")

    closed = test_client.patch(f"/api/v1/timeSlots/{slot.id}", json={"status": "closed"})
    assert closed.json()["status"] == "closed"

    rejected = test_client.post("/api/v1/queues", json={"eventId": event.id, "timeSlotId": slot.id})
    assert rejected.status_code == 409
    assert rejected.json()["error"]["reason"] == "closed"

    reopened = test_client.patch(f"/api/v1/timeSlots/{slot.id}", json={"status": "available"})
    assert reopened.json()["status"] == "available"


def test_capacity_below_count_rejected(test_client, current_user, seeded_slot):
    event, slot = seeded_slot
    _join_as(test_client, current_user, "user_a", event, slot)
    _join_as(test_client, current_user, "user_b", event, slot)

    current_user.login("admin_1", role="admin")
    response = test_client.patch(f"/api/v1/timeSlots/{slot.id}", json={"maxCapacity": 1})

    assert response.status_code == 400
    assert response.json()["error"]["field"] == "max_capacity"

    shrunk = test_client.patch(f"/api/v1/timeSlots/{slot.id}", json={"maxCapacity": 2})
    assert shrunk.json()["status"] == "full"


def test_queue_listing_and_summary(test_client, current_user, seeded_slot):
    event, slot = seeded_slot
    a = _join_as(test_client, current_user, "user_a", event, slot)
    _join_as(test_client, current_user, "user_b", event, slot)

    current_user.login("user_a")
    assert test_client.delete(f"/api/v1/queues/{a['id']}").status_code == 204

    assert test_client.get(f"/api/v1/timeSlots/{slot.id}/queue").status_code == 403

    current_user.login("admin_1", role="admin")
    listing = test_client.get(f"/api/v1/timeSlots/{slot.id}/queue").json()
    assert [e["queue_number"] for e in listing] == [1, 2]

    waiting = test_client.get(f"/api/v1/timeSlots/{slot.id}/queue", params={"status": "waiting"}).json()
    assert [e["user_id"] for e in waiting] == ["user_b"]

    summary = test_client.get(f"/api/v1/timeSlots/{slot.id}/queueSummary").json()
    assert summary["total_count"] == 2
    assert summary["waiting_count"] == 1
    assert summary["cancelled_count"] == 1
    assert summary["estimated_wait_time"] == 5
