"""Health check endpoints for filegate.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks the object store bucket)
"""

from __future__ import annotations

import asyncio
import time
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from filegate.api.deps import get_gateway
from filegate.storage.gateway import ObjectStoreGateway

router = APIRouter(prefix="/health", tags=["health"])

STORE_CHECK_TIMEOUT = 5.0  # seconds


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(
    gateway: Annotated[ObjectStoreGateway, Depends(get_gateway)],
) -> JSONResponse:
    """Readiness probe: the bucket must be reachable."""
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(gateway.ping(), timeout=STORE_CHECK_TIMEOUT)
        message = None if healthy else "Object store check failed"
    except asyncio.TimeoutError:
        healthy = False
        message = "Object store check timed out"
    latency = (time.monotonic() - start) * 1000

    component: dict[str, Any] = {
        "name": "object_store",
        "status": "healthy" if healthy else "unhealthy",
        "latency_ms": round(latency, 2),
    }
    if message:
        component["message"] = message

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ready" if healthy else "not_ready",
            "components": [component],
        },
    )
