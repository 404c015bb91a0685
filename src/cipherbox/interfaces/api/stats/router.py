"""Runtime metrics endpoint."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from cipherbox.interfaces.app_state import AppState

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/metrics")
async def metrics(request: Request) -> JSONResponse:
    """Return in-memory per-proxy and link-cache counters."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content=state.metrics.snapshot())
