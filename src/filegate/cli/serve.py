"""CLI command for running the API server.

Usage:
    filegate serve
    filegate serve --port 8080 --host 0.0.0.0
    filegate serve --reload --log-level debug
"""

from __future__ import annotations

import typer

from filegate.config import settings

app = typer.Typer(help="Run the filegate API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(
        settings.host,
        "--host",
        "-h",
        help="Host to bind to",
    ),
    port: int = typer.Option(
        settings.port,
        "--port",
        "-p",
        help="Port to listen on",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        "-r",
        help="Enable auto-reload for development",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        help="Number of worker processes",
    ),
    log_level: str = typer.Option(
        settings.log_level.lower(),
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
    access_log: bool = typer.Option(
        True,
        "--access-log/--no-access-log",
        help="Enable/disable access logging",
    ),
) -> None:
    """Run the filegate API server.

    Starts uvicorn with the application factory; every worker builds its own
    object store gateway.
    """
    import uvicorn

    workers_effective = workers if not reload else 1  # Reload requires single worker

    typer.echo("Starting filegate server...")
    typer.echo(f"  Host: {host}")
    typer.echo(f"  Port: {port}")
    typer.echo(f"  Workers: {workers_effective}")
    typer.echo(f"  Bucket: {settings.s3_bucket}")
    typer.echo(f"  Log level: {log_level}")
    if reload:
        typer.echo("  Reload: enabled")
    typer.echo()
    typer.echo(f"API documentation: http://{host}:{port}/docs")
    typer.echo()

    uvicorn.run(
        app="filegate.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers_effective,
        log_level=log_level.lower(),
        access_log=access_log,
    )
