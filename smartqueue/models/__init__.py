# smartqueue/models/__init__.py
# Import all models to ensure SQLAlchemy can resolve relationships
# Order matters for dependencies - import base models first

from smartqueue.db.base_class import Base
from smartqueue.models.event import Event
from smartqueue.models.time_slot import TimeSlot
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.models.companion import CompanionRequest, Companion
from smartqueue.models.notification import Notification
from smartqueue.models.ticket import Ticket
