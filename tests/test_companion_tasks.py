from datetime import timedelta
from unittest.mock import MagicMock, patch

from smartqueue.background_tasks.companion_tasks import expand_pending_search_ranges
from smartqueue.models.companion import CompanionRequest
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.utils.timezone import utcnow
from tests.utils.event import create_event_with_slot


def test_expand_pending_search_ranges_widens_old_requests(session_factory, db_session):
    event, slot = create_event_with_slot(db_session)
    entry = QueueEntry(
        event_id=event.id,
        time_slot_id=slot.id,
        user_id="user_a",
        queue_number=1,
        original_queue_number=1,
        status="waiting",
    )
    db_session.add(entry)
    db_session.flush()
    request = CompanionRequest(
        user_id="user_a",
        queue_id=entry.id,
        event_id=event.id,
        time_slot_id=slot.id,
        original_queue_number=1,
        offered_price=15000,
        search_range=5,
        status="pending",
        created_at=utcnow() - timedelta(minutes=2, seconds=5),
    )
    db_session.add(request)
    db_session.commit()

    assert expand_pending_search_ranges(session_factory) == 1

    db_session.refresh(request)
    assert request.search_range == 15


def test_expand_pending_search_ranges_logs_and_swallows_errors(caplog):
    db = MagicMock()
    with patch(
        "smartqueue.background_tasks.companion_tasks.CompanionMatchingService.expand_pending_ranges",
        side_effect=RuntimeError("boom"),
    ):
        assert expand_pending_search_ranges(lambda: db) == 0

    db.rollback.assert_called_once()
    db.close.assert_called_once()
    assert "Error in expand_pending_search_ranges" in caplog.text
