"""Ports for source discovery and source health tracking."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scoutarr.domain.entities.source import Source


@runtime_checkable
class SourceRegistryPort(Protocol):
    """Synchronous interface for listing and retrieving sources."""

    def enabled_searchable_sources(self) -> list[Source]: ...
    def get(self, source_id: str) -> Source: ...
    def list_ids(self) -> list[str]: ...


@runtime_checkable
class HealthTrackerPort(Protocol):
    """Fire-and-forget health side effects; return values are ignored."""

    def record_success(self, source: Source) -> None: ...
    def record_failure(self, source: Source) -> None: ...
