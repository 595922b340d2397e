# smartqueue/background_tasks/companion_tasks.py
"""
Background tasks for companion matching.

Tasks include:
- Widening the candidate search window of pending companion requests
"""

import logging

from smartqueue.db.session import SessionLocal
from smartqueue.services.companion_service import CompanionMatchingService

logger = logging.getLogger(__name__)


def expand_pending_search_ranges(session_factory=SessionLocal):
    """
    Grow the search range of every pending companion request according to
    its age.

    Runs every SEARCH_RANGE_EXPANSION_INTERVAL_MINUTES (1 minute by default).
    """
    db = session_factory()

    try:
        expanded = CompanionMatchingService().expand_pending_ranges(db)
        if expanded:
            logger.info(f"Expanded search range of {expanded} pending companion request(s)")
        return expanded

    except Exception as e:
        logger.error(f"Error in expand_pending_search_ranges: {e}", exc_info=True)
        db.rollback()
        return 0
    finally:
        db.close()
