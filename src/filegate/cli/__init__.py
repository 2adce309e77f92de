"""CLI commands for filegate.

Provides command-line interface using Typer:
- filegate serve: Run the API server
- filegate ensure-bucket: Create the configured bucket if it is missing

Usage:
    filegate --help
    filegate serve --port 3000
    filegate ensure-bucket
"""

import typer

from filegate.cli.bucket import app as bucket_app
from filegate.cli.serve import app as serve_app

app = typer.Typer(
    name="filegate",
    help="filegate: validated file uploads over S3-compatible storage",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(bucket_app, name="ensure-bucket")


@app.callback()
def callback() -> None:
    """filegate: validated file uploads over S3-compatible storage."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
