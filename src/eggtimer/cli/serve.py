"""
CLI: ``eggtimer serve`` -- start the API server.
"""

from __future__ import annotations

import typer
import uvicorn

from eggtimer.cli.utils import console
from eggtimer.core.settings import get_settings


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: EGGTIMER_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: EGGTIMER_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the eggtimer REST API server."""
    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"[bold green]Starting eggtimer[/bold green] on http://{host}:{port}")
    # Timers live in one process; more than one worker would split them
    uvicorn.run(
        "eggtimer.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
        log_level=log_level,
    )
