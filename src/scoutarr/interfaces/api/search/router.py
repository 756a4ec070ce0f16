"""Search endpoints: start, extend, clear, inspect and stream the search state."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Optional, cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from scoutarr.domain.entities.search import ContentType, SearchEnrichment
from scoutarr.interfaces.api.search.presenter import render_sse_event, render_state
from scoutarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


class SearchRequest(BaseModel):
    query: str = Field(..., description="Free-text title query.")
    tmdb_id: Optional[int] = None
    original_title: Optional[str] = None
    year: Optional[int] = None
    content_type: Optional[ContentType] = None

    def enrichment(self) -> SearchEnrichment | None:
        if (
            self.tmdb_id is None
            and self.original_title is None
            and self.year is None
            and self.content_type is None
        ):
            return None
        return SearchEnrichment(
            tmdb_id=self.tmdb_id,
            original_title=self.original_title,
            year=self.year,
            content_type=self.content_type,
        )


def _state(request: Request) -> AppState:
    return cast(AppState, request.app.state)


@router.post("")
async def start_search(request: Request, body: SearchRequest) -> JSONResponse:
    """Start a search; progress is visible via GET /search or the event stream."""
    service = _state(request).search_service
    service.search(body.query, body.enrichment())
    return JSONResponse(status_code=202, content=render_state(service.state))


@router.post("/more")
async def load_more(request: Request) -> JSONResponse:
    """Escalate the bot-protected sources of a PARTIAL result."""
    service = _state(request).search_service
    if service.load_more() is None:
        return JSONResponse(
            status_code=409,
            content={
                "error": "nothing_to_load",
                "status": service.state.status.value,
            },
        )
    return JSONResponse(status_code=202, content=render_state(service.state))


@router.delete("")
async def clear_search(request: Request) -> JSONResponse:
    service = _state(request).search_service
    service.clear()
    return JSONResponse(content=render_state(service.state))


@router.get("")
async def current_search(request: Request) -> JSONResponse:
    service = _state(request).search_service
    content = render_state(service.state)
    content["has_pending_tasks"] = service.has_pending_tasks
    return JSONResponse(content=content)


@router.get("/events")
async def search_events(
    request: Request,
    until_terminal: bool = Query(
        default=False,
        description="Close the stream after the first COMPLETE or ERROR state.",
    ),
) -> StreamingResponse:
    """Server-sent events: the current state, then every published state."""
    service = _state(request).search_service
    subscription = service.observe_state()

    async def _events() -> AsyncIterator[str]:
        try:
            async for state in subscription:
                yield render_sse_event(state)
                if until_terminal and state.is_terminal:
                    break
                if await request.is_disconnected():
                    log.debug("search_events_client_disconnected")
                    break
        finally:
            subscription.close()

    return StreamingResponse(
        _events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
