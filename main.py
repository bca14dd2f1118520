"""
Unified backend entry point.

Architecture:
- One Python process, one asyncio event loop
- Peer services running concurrently:
  1. FastAPI (HTTP API + WebSocket endpoint)
  2. Fan-out worker (drains the in-process notification queue)
  3. Retry scheduler (only with FANOUT_RETRY_ENABLED)

We use FastAPI's lifespan to manage startup/shutdown. The presence router,
fan-out service, queue and notifier are created here, once per process,
and reached by routes through app.state.

Run with: python main.py [--port PORT]
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")  # Local overrides (gitignored)
load_dotenv()  # Fallback to .env

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import (
    check_required_env_vars,
    get_allowed_origins,
    get_api_port,
    get_fanout_queue_size,
    get_presence_queue_size,
    is_fanout_retry_enabled,
)
from core.database import close_engine
from core.notifications.bus import FanoutQueue, FanoutWorker
from core.notifications.dispatcher import FanoutService
from core.notifications.presence import PresenceRouter
from core.notifications.remote import build_notifier
from core.notifications.scheduler import init_scheduler, shutdown_scheduler
from web_api.errors import register_error_handlers
from web_api.routes.announcements import router as announcements_router
from web_api.routes.courses import router as courses_router
from web_api.routes.internal import router as internal_router
from web_api.routes.notifications import router as notifications_router
from web_api.routes.realtime import router as realtime_router
from web_api.routes.schedules import router as schedules_router
from web_api.routes.venues import router as venues_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

if os.environ.get("SENTRY_DSN"):
    sentry_sdk.init(
        dsn=os.environ["SENTRY_DSN"],
        environment=os.environ.get("ENVIRONMENT", "development"),
        traces_sample_rate=0.1,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Builds the per-process notification services and starts the fan-out
    worker alongside FastAPI in the same event loop.
    """
    ok, messages = check_required_env_vars()
    for message in messages:
        logger.warning(message)
    if not ok:
        raise RuntimeError("Required environment variables are missing")

    presence = PresenceRouter(queue_size=get_presence_queue_size())
    fanout = FanoutService(presence)
    queue = FanoutQueue(maxsize=get_fanout_queue_size())
    worker = FanoutWorker(queue, fanout)

    app.state.presence = presence
    app.state.fanout = fanout
    app.state.fanout_queue = queue
    app.state.notifier = build_notifier(queue)

    worker.start()
    if is_fanout_retry_enabled():
        init_scheduler()

    yield  # FastAPI runs here, the worker runs alongside it

    logger.info("Shutting down peer services...")
    presence.close_all()
    await worker.stop()
    shutdown_scheduler()
    await close_engine()  # Close database connections


# Create FastAPI app with lifespan
app = FastAPI(
    title="Venue Scheduling & Notifications API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(schedules_router)
app.include_router(notifications_router)
app.include_router(venues_router)
app.include_router(announcements_router)
app.include_router(courses_router)
app.include_router(internal_router)
app.include_router(realtime_router)


@app.get("/health")
async def health():
    """Health check endpoint with live connection counts."""
    presence = getattr(app.state, "presence", None)
    queue = getattr(app.state, "fanout_queue", None)
    return {
        "status": "healthy",
        "connectedUsers": presence.connected_count() if presence else 0,
        "sessions": presence.session_count() if presence else 0,
        "pendingFanout": len(queue) if queue is not None else 0,
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Venue Scheduling & Notifications Server")
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: API_PORT or 8000)",
    )
    args = parser.parse_args()

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
