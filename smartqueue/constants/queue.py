# smartqueue/constants/queue.py
"""
Status values for events, time slots, queue entries, companion requests
and companions.

Provides type-safe constants to replace hardcoded strings throughout the codebase.
"""


class EventStatus:
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    # Events in these states accept new queue entries.
    OPEN = (UPCOMING, ACTIVE)

    @classmethod
    def all_values(cls) -> list[str]:
        return [cls.UPCOMING, cls.ACTIVE, cls.COMPLETED, cls.CANCELLED]


class TimeSlotStatus:
    AVAILABLE = "available"
    FULL = "full"
    CLOSED = "closed"

    @classmethod
    def all_values(cls) -> list[str]:
        return [cls.AVAILABLE, cls.FULL, cls.CLOSED]


class QueueStatus:
    """Queue entry lifecycle: waiting -> called -> entered, or -> cancelled."""
    WAITING = "waiting"
    CALLED = "called"
    ENTERED = "entered"
    CANCELLED = "cancelled"

    ACTIVE = (WAITING, CALLED)
    TERMINAL = (ENTERED, CANCELLED)

    @classmethod
    def all_values(cls) -> list[str]:
        return [cls.WAITING, cls.CALLED, cls.ENTERED, cls.CANCELLED]


class CompanionType:
    REQUESTER = "requester"
    COMPANION = "companion"


class CompanionRequestStatus:
    """pending -> matched | cancelled; matched -> withdrawn_by_companion | cancelled."""
    PENDING = "pending"
    MATCHED = "matched"
    CANCELLED = "cancelled"
    WITHDRAWN_BY_COMPANION = "withdrawn_by_companion"

    # At most one request per (user, queue entry) may be in one of these.
    OPEN = (PENDING, MATCHED)

    @classmethod
    def all_values(cls) -> list[str]:
        return [cls.PENDING, cls.MATCHED, cls.CANCELLED, cls.WITHDRAWN_BY_COMPANION]


class CompanionStatus:
    WAITING = "waiting"
    ACTIVE = "active"


class TicketStatus:
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class NotificationKind:
    QUEUE_JOINED = "queue_joined"
    QUEUE_CALL = "queue_call"
    COMPANION_MATCHED = "companion_matched"
    COMPANION_WITHDRAWN = "companion_withdrawn"
