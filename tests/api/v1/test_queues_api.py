# tests/api/v1/test_queues_api.py

import pytest

from tests.utils.event import create_event_with_slot


@pytest.fixture
def seeded_slot(session_factory):
    with session_factory() as db:
        event, slot = create_event_with_slot(db, max_capacity=2)
    return event, slot


def _join(client, event, slot):
    return client.post("/api/v1/queues", json={"eventId": event.id, "timeSlotId": slot.id})


def test_join_queue_success(test_client, current_user, seeded_slot, notifier):
    event, slot = seeded_slot

    response = _join(test_client, event, slot)

    assert response.status_code == 201
    body = response.json()
    assert body["queue_number"] == 1
    assert body["status"] == "waiting"
    assert body["user_id"] == "user_a"
    assert body["estimated_wait_time"] == 5
    notifier.notify.assert_called_once()


def test_capacity_scenario_over_http(test_client, current_user, seeded_slot):
    event, slot = seeded_slot

    current_user.login("user_a")
    a = _join(test_client, event, slot).json()
    current_user.login("user_b")
    assert _join(test_client, event, slot).json()["queue_number"] == 2

    current_user.login("user_c")
    full = _join(test_client, event, slot)
    assert full.status_code == 409
    error = full.json()["error"]
    assert error["code"] == "SLOT_FULL"
    assert error["category"] == "conflict_error"
    assert error["path"] == "/api/v1/queues"

    current_user.login("user_a")
    assert test_client.delete(f"/api/v1/queues/{a['id']}").status_code == 204

    current_user.login("user_c")
    assert _join(test_client, event, slot).json()["queue_number"] == 3

    summary = test_client.get(f"/api/v1/timeSlots/{slot.id}/summary").json()
    assert summary["current_count"] == 2
    assert summary["is_full"] is True


def test_duplicate_join_conflict(test_client, seeded_slot):
    event, slot = seeded_slot
    _join(test_client, event, slot)

    response = _join(test_client, event, slot)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "DUPLICATE_ENTRY"


def test_join_unknown_slot(test_client, seeded_slot):
    event, _ = seeded_slot

    response = test_client.post("/api/v1/queues", json={"eventId": event.id, "timeSlotId": "slot_missing"})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SLOT_NOT_FOUND"


def test_join_missing_body_fields(test_client):
    response = test_client.post("/api/v1/queues", json={"eventId": "evt_1"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["category"] == "validation_error"
    assert error["validation_errors"]


def test_cancel_twice(test_client, seeded_slot):
    event, slot = seeded_slot
    entry = _join(test_client, event, slot).json()

    assert test_client.delete(f"/api/v1/queues/{entry['id']}").status_code == 204
    second = test_client.delete(f"/api/v1/queues/{entry['id']}")

    assert second.status_code == 409
    assert second.json()["error"]["code"] == "ALREADY_CANCELLED"


def test_cancel_someone_elses_entry(test_client, current_user, seeded_slot):
    event, slot = seeded_slot
    entry = _join(test_client, event, slot).json()

    current_user.login("user_b")
    response = test_client.delete(f"/api/v1/queues/{entry['id']}")

    assert response.status_code == 403
    assert response.json()["error"]["category"] == "permission_error"


def test_get_and_list_my_entries(test_client, current_user, seeded_slot):
    event, slot = seeded_slot
    entry = _join(test_client, event, slot).json()

    assert test_client.get(f"/api/v1/queues/{entry['id']}").json()["id"] == entry["id"]
    assert [e["id"] for e in test_client.get("/api/v1/queues/me").json()] == [entry["id"]]

    current_user.login("user_b")
    assert test_client.get(f"/api/v1/queues/{entry['id']}").status_code == 403
    assert test_client.get("/api/v1/queues/me").json() == []


def test_enter_requires_admin_and_called_status(test_client, current_user, seeded_slot):
    event, slot = seeded_slot
    entry = _join(test_client, event, slot).json()

    assert test_client.post(f"/api/v1/queues/{entry['id']}/enter").status_code == 403

    current_user.login("admin_1", role="admin")
    not_called = test_client.post(f"/api/v1/queues/{entry['id']}/enter")
    assert not_called.status_code == 409
    assert not_called.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    test_client.post(f"/api/v1/timeSlots/{slot.id}/callNext")
    entered = test_client.post(f"/api/v1/queues/{entry['id']}/enter")
    assert entered.status_code == 200
    assert entered.json()["status"] == "entered"
