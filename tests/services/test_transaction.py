from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from smartqueue.core.exceptions import SlotFullError, TransientError
from smartqueue.db.transaction import run_in_transaction, transactional


def _conflict():
    return OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))


def test_commits_on_success():
    db = MagicMock()

    result = run_in_transaction(db, lambda session, value: value * 2, 21)

    assert result == 42
    db.commit.assert_called_once()
    db.rollback.assert_not_called()


def test_retries_conflicts_then_succeeds():
    db = MagicMock()
    work = MagicMock(side_effect=[_conflict(), IntegrityError("INSERT", {}, Exception("unique")), "ok"])

    assert run_in_transaction(db, work, max_attempts=3) == "ok"
    assert work.call_count == 3
    assert db.rollback.call_count == 2
    db.commit.assert_called_once()


def test_gives_up_with_transient_error():
    db = MagicMock()
    work = MagicMock(side_effect=_conflict())

    with pytest.raises(TransientError) as exc_info:
        run_in_transaction(db, work, max_attempts=2)

    assert work.call_count == 2
    assert exc_info.value.details == {"attempts": 2}
    assert exc_info.value.status_code == 503
    db.commit.assert_not_called()


def test_domain_errors_are_not_retried():
    db = MagicMock()
    work = MagicMock(side_effect=SlotFullError("slot_1"))

    with pytest.raises(SlotFullError):
        run_in_transaction(db, work, max_attempts=5)

    assert work.call_count == 1
    db.rollback.assert_called_once()


def test_transactional_decorator_passes_arguments():
    class Service:
        @transactional
        def work(self, db, value, *, factor):
            return value * factor

    db = MagicMock()

    assert Service().work(db, 3, factor=4) == 12
    db.commit.assert_called_once()
