"""API route aggregation.

All routers registered here get mounted in main.py. There is no auth:
the dispatcher trusts its network, same as the WebSocket endpoint.
"""

from fastapi import APIRouter

from jobhub.api.dispatch import router as dispatch_router
from jobhub.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(dispatch_router, tags=["dispatch"])
