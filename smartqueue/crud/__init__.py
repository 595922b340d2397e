# smartqueue/crud/__init__.py

from .crud_event import event
from .crud_time_slot import time_slot_ledger
from .crud_queue_entry import queue_entry
from .crud_companion import companion_request, companion
from .crud_notification import notification
