"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from scoutarr import __version__
from scoutarr.infrastructure.config import AppConfig
from scoutarr.interfaces.app_state import AppState
from scoutarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (registry, fetchers, search service) are created in lifespan().
    """
    app = FastAPI(
        title="Scoutarr",
        description="Multi-source title search with progressive results",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from scoutarr.interfaces.api.search.router import router as search_router
    from scoutarr.interfaces.api.sources.router import router as sources_router

    app.include_router(search_router, prefix="/api/v1")
    app.include_router(sources_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness probe with the current search status."""
        registry = getattr(app.state, "registry", None)
        service = getattr(app.state, "search_service", None)
        return {
            "status": "ok",
            "sources": len(registry) if registry is not None else 0,
            "search_status": service.state.status.value if service is not None else "unavailable",
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
