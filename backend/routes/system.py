"""Liveness, metrics and the OIDC redirect placeholder."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["system"])


@router.get("/", status_code=204, summary="Liveness probe")
async def health() -> Response:
    """Return 204 with no body while the process is serving."""
    return Response(status_code=204)


@router.get("/metrics", summary="Prometheus metrics")
async def metrics() -> Response:
    """Expose process and runtime metrics in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/demo/callback", status_code=204, include_in_schema=False)
async def oidc_callback() -> Response:
    """Redirect target registered with the identity provider; nothing to do here."""
    return Response(status_code=204)
