"""JobHub CLI: run the dispatcher and inspect its queues and workers.

Usage:
    jobhub serve                    # Run the dispatcher (uvicorn)
    jobhub status                   # Queue depths, pending jobs, counters
    jobhub status --json            # Same, raw JSON
    jobhub workers                  # Registered workers and their load
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import logging
import os
from typing import Optional

import click
import httpx

from jobhub import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("JOBHUB_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the dispatcher."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=10.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _get_json(path: str):
    try:
        async with _client() as c:
            r = await c.get(path)
            r.raise_for_status()
            return r.json()
    except httpx.HTTPError as e:
        raise click.ClickException(f"dispatcher at {_api_url()} unreachable ({e})") from e


def _load_color(load: float) -> str:
    if load >= 1.0:
        return "red"
    if load > 0:
        return "yellow"
    return "green"


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="jobhub")
def main():
    """JobHub: connection-mediated job dispatcher."""


# ---------------------------------------------------------------------------
# jobhub serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: JOBHUB_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: JOBHUB_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the dispatcher server."""
    import uvicorn

    from jobhub.config import settings

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run(
        "jobhub.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level,
        ws_max_size=settings.max_message_bytes,
    )


# ---------------------------------------------------------------------------
# jobhub status
# ---------------------------------------------------------------------------


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def status(as_json: bool):
    """Show queue depths, pending jobs and dispatch counters."""
    data = _run(_get_json("/api/v1/dispatch-status"))

    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return

    click.secho("Queues:", bold=True)
    waits = data.get("oldest_wait_seconds", {})
    for category, depth in data["queues"].items():
        wait = waits.get(category)
        oldest = f"  (oldest waiting {wait:.1f}s)" if wait is not None else ""
        click.echo(f"  {category:10s} {depth}{oldest}")
    click.echo()
    click.echo(f"Pending jobs: {data['pending_jobs']}")
    click.echo(f"Workers:      {data['workers']}")
    click.echo(f"Connections:  {data['connections']}")
    click.echo()
    stats = data["stats"]
    click.secho("Counters:", bold=True)
    for key in ("submitted", "assigned", "completed", "rejected", "dropped"):
        click.echo(f"  {key:10s} {stats[key]}")


# ---------------------------------------------------------------------------
# jobhub workers
# ---------------------------------------------------------------------------


@main.command()
def workers():
    """List registered workers with their tags and load."""
    rows = _run(_get_json("/api/v1/workers"))

    if not rows:
        click.echo("No workers registered.")
        return

    click.secho(f"Workers ({len(rows)}):", bold=True)
    click.echo()
    for w in rows:
        load = click.style(
            f"{w['running']}/{w['max_concurrency']}", fg=_load_color(w["load"])
        )
        click.echo(f"  {w['worker_id'][:36]:36s}  {load:20s}  tags={','.join(w['tags']) or '—'}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
