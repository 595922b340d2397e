# smartqueue/api/v1/api.py

from fastapi import APIRouter
from smartqueue.api.v1.endpoints import (
    events,
    time_slots,
    queues,
    companion_requests,
    notifications,
)

# This is the main router for the v1 API.
# It will include all the specific endpoint routers.
api_router = APIRouter()

api_router.include_router(events.router)
api_router.include_router(time_slots.router)
api_router.include_router(queues.router)
api_router.include_router(companion_requests.router)
api_router.include_router(notifications.router)
