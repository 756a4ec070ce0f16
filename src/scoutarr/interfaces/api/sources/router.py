"""Diagnostic endpoints for configured sources and their health."""

from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from scoutarr.domain.exceptions import SourceNotFoundError
from scoutarr.interfaces.app_state import AppState

router = APIRouter(prefix="/sources", tags=["sources"])


@router.get("")
async def list_sources(request: Request) -> JSONResponse:
    """Every source with its current priority and health counters."""
    registry = cast(AppState, request.app.state).registry
    sources = registry.snapshot()
    return JSONResponse(content={"sources": sources, "count": len(sources)})


@router.post("/{source_id}/reset")
async def reset_source(request: Request, source_id: str) -> JSONResponse:
    """Restore a source's priority to its configured base."""
    registry = cast(AppState, request.app.state).registry
    try:
        registry.reset_priority(source_id)
    except SourceNotFoundError:
        return JSONResponse(status_code=404, content={"error": "source_not_found", "source_id": source_id})
    return JSONResponse(content={"status": "reset", "source_id": source_id})
