# smartqueue/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from smartqueue.api.v1.api import api_router
from smartqueue.core.config import settings
from smartqueue.core.error_handlers import register_exception_handlers
from smartqueue.core.limiter import limiter
from smartqueue.db.base_class import Base
from smartqueue.db.session import engine
from smartqueue.scheduler import init_scheduler, shutdown_scheduler

import smartqueue.models  # noqa: F401

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("SmartQueue service starting up...")
    if settings.CREATE_TABLES_ON_STARTUP:
        Base.metadata.create_all(bind=engine)
    if settings.SCHEDULER_ENABLED:
        init_scheduler()
    yield
    logger.info("SmartQueue service shutting down...")
    if settings.SCHEDULER_ENABLED:
        shutdown_scheduler()


app = FastAPI(
    title="SmartQueue Queue & Matching Service",
    version="1.0.0",
    description="""
        **SmartQueue Service**

        Virtual lines for event check-in.

        ## Features

        * **Queue Admission**: Sequential queue numbers per time slot with capacity limits
        * **Companion Matching**: Paid companion requests linked to queue positions
        * **Dispatch**: Admin call-next and entry confirmation
        * **Event Administration**: Events, time slots and queue summaries
        * **Notifications**: Stored notifications for join, call and companion events

        ## Authentication

        All endpoints require JWT authentication via the `Authorization: Bearer <token>` header.
        Dispatch and event management require the `admin` role.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,  # Allow cookies and authorization headers
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "SmartQueue Service is running"}
