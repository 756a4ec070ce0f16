"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from starlette.datastructures import State

from scoutarr.application.use_cases.unified_search import UnifiedSearchService
from scoutarr.infrastructure.config import AppConfig
from scoutarr.infrastructure.sources import YamlSourceRegistry


class AppState(State):
    """FastAPI application state.

    Lifecycle managed by composition.py::lifespan().
    """

    config: AppConfig
    registry: YamlSourceRegistry
    search_service: UnifiedSearchService
