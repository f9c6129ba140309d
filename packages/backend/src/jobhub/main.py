"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. The lifespan creates the DispatchHub that owns all scheduling
state and stores it on app.state, where the WebSocket endpoint and the
status API pick it up.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobhub import __version__
from jobhub.api import api_router
from jobhub.config import Settings, settings as default_settings
from jobhub.dispatcher.hub import DispatchHub

logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle.

        Anything before `yield` runs at startup, after `yield` at shutdown.
        Queued jobs and registrations are in memory only and die here.
        """
        app.state.hub = DispatchHub(max_message_bytes=settings.max_message_bytes)
        logger.info(
            "jobhub.starting",
            version=__version__,
            environment=settings.environment,
            port=settings.port,
            max_message_bytes=settings.max_message_bytes,
        )

        yield

        snapshot = app.state.hub.snapshot()
        logger.info(
            "jobhub.shutdown",
            queued=snapshot["queues"],
            pending_jobs=snapshot["pending_jobs"],
            stats=snapshot["stats"],
        )

    app = FastAPI(
        title="JobHub Dispatcher",
        description="Connection-mediated job dispatcher: workers pull typed jobs and results route back to senders",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestContext → CORS → handler

    from jobhub.middleware.request_context import RequestContextMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    # Liveness probe (outside /api/v1) + API routes
    from jobhub.api.health import probe_router
    app.include_router(probe_router, tags=["health"])
    app.include_router(api_router)

    # Dispatch protocol
    from jobhub.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: jobhub.main:app)
app = create_app()
