"""Dispatch API: read-only view of the scheduler.

Learn: These endpoints let a dashboard (or `jobhub status`) see what the
hub sees: queue depths per category, jobs still waiting on a result,
connected workers and their load. They never mutate state.
"""

from fastapi import APIRouter, Depends, Request

from jobhub.dispatcher.hub import DispatchHub

router = APIRouter()


def get_hub(request: Request) -> DispatchHub:
    return request.app.state.hub


@router.get("/dispatch-status")
async def get_dispatch_status(hub: DispatchHub = Depends(get_hub)):
    """Queue depths, pending job count, worker count and counters."""
    return hub.snapshot()


@router.get("/workers")
async def list_workers(hub: DispatchHub = Depends(get_hub)):
    """Registered workers with tags, load and last-seen time."""
    return hub.worker_list()
