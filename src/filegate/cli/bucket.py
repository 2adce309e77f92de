"""CLI command for provisioning the storage bucket.

Usage:
    filegate ensure-bucket
    filegate ensure-bucket --bucket uploads --endpoint-url http://localhost:9000
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from filegate.config import settings
from filegate.errors import BucketProvisioningFailed
from filegate.storage.gateway import ObjectStoreGateway

app = typer.Typer(help="Create the storage bucket if it does not exist")


async def _ensure(gateway: ObjectStoreGateway) -> None:
    # start() provisions the bucket
    async with gateway:
        pass


@app.callback(invoke_without_command=True)
def ensure_bucket(
    bucket: Optional[str] = typer.Option(
        None,
        "--bucket",
        "-b",
        help="Bucket name (default: S3_BUCKET)",
    ),
    endpoint_url: Optional[str] = typer.Option(
        None,
        "--endpoint-url",
        "-e",
        help="S3-compatible endpoint (default: S3_ENDPOINT_URL)",
    ),
) -> None:
    """Create the configured bucket, or confirm that it already exists."""
    overrides = {}
    if bucket:
        overrides["s3_bucket"] = bucket
    if endpoint_url:
        overrides["s3_endpoint_url"] = endpoint_url
    config = settings.model_copy(update=overrides)
    gateway = ObjectStoreGateway.from_settings(config)

    typer.echo(f"Ensuring bucket {gateway.bucket!r}...")
    try:
        asyncio.run(_ensure(gateway))
    except BucketProvisioningFailed as e:
        typer.echo(f"Error: {e.text}", err=True)
        raise typer.Exit(1)

    typer.echo(typer.style("Bucket ready", fg=typer.colors.GREEN))
