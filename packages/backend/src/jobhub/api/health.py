"""Health check endpoints.

Learn: /healthz is the plain-text liveness probe load balancers hit; it
sits outside the dispatch protocol and always answers "ok". The JSON
variant under /api/v1 adds the version for humans and dashboards.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from jobhub import __version__

router = APIRouter()
probe_router = APIRouter()


@probe_router.get("/healthz", response_class=PlainTextResponse)
async def liveness_probe():
    return "ok"


@router.get("/health")
async def health_check():
    """Report server status and version."""
    return {"status": "healthy", "server": "ok", "version": __version__}
