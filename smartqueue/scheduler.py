# smartqueue/scheduler.py
"""
Background task scheduler.

Uses APScheduler to run periodic background jobs for:
- Expanding the search range of pending companion requests
"""

import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED

from smartqueue.background_tasks.companion_tasks import expand_pending_search_ranges
from smartqueue.core.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = None


def _on_job_error(event):
    """Log scheduler job errors with full context."""
    exc = event.exception
    logger.error(
        "Scheduled job FAILED: job_id=%s error=%s",
        event.job_id, exc,
        exc_info=(type(exc), exc, None) if exc else None,
    )
    if event.traceback:
        logger.error("Traceback for job %s:\n%s", event.job_id, event.traceback)


def _on_job_missed(event):
    """Log when a scheduled job misses its execution window."""
    logger.warning(
        "Scheduled job MISSED: job_id=%s scheduled_run_time=%s",
        event.job_id,
        event.scheduled_run_time,
    )


def init_scheduler():
    """
    Initialize the background scheduler with all periodic tasks.

    This is called once when the application starts up.
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return scheduler

    scheduler = BackgroundScheduler(
        timezone="UTC",
        job_defaults={
            'coalesce': True,  # Combine missed executions
            'max_instances': 1,  # Only one instance of each job at a time
            'misfire_grace_time': 60
        }
    )

    interval = settings.SEARCH_RANGE_EXPANSION_INTERVAL_MINUTES
    scheduler.add_job(
        func=expand_pending_search_ranges,
        trigger=IntervalTrigger(minutes=interval),
        id='expand_pending_search_ranges',
        name='Expand Companion Request Search Ranges',
        replace_existing=True
    )
    logger.info(f"Scheduled job: expand_pending_search_ranges (every {interval} minute(s))")

    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    scheduler.add_listener(_on_job_missed, EVENT_JOB_MISSED)

    scheduler.start()
    logger.info("Background scheduler started successfully")

    return scheduler


def shutdown_scheduler():
    """
    Shutdown the scheduler gracefully.

    This is called when the application shuts down.
    """
    global scheduler

    if scheduler is not None:
        logger.info("Shutting down background scheduler...")
        scheduler.shutdown(wait=True)
        scheduler = None
        logger.info("Background scheduler shut down successfully")


def get_scheduler():
    """Get the global scheduler instance"""
    return scheduler
