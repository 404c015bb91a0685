"""Read-only view of the configured proxy chain."""

from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Request

from cipherbox.interfaces.app_state import AppState

router = APIRouter(prefix="/proxies", tags=["proxies"])


@router.get("")
async def list_proxies(request: Request) -> dict[str, Any]:
    """Configured proxies in priority order (headers are not exposed)."""
    state = cast(AppState, request.app.state)
    proxies = [
        {
            "priority": index,
            "name": proxy.name,
            "endpoint": proxy.endpoint,
            "method": proxy.method,
            "type": proxy.encoding,
            "field": proxy.field_name,
            "enabled": proxy.enabled,
        }
        for index, proxy in enumerate(state.orchestrator.proxies)
    ]
    return {"proxies": proxies, "count": len(proxies)}
