"""YAML-backed source registry that also tracks source health."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from scoutarr.domain.entities.source import Source
from scoutarr.domain.exceptions import (
    DuplicateSourceError,
    SourceNotFoundError,
    SourceValidationError,
)
from scoutarr.infrastructure.sources.schema import SourcesFile

log = structlog.get_logger(__name__)


class YamlSourceRegistry:
    """
    In-memory source registry loaded from a YAML file.

    Implements both SourceRegistryPort and HealthTrackerPort: health
    side effects mutate the stored Source, so the next search sees the
    adjusted priority.
    """

    def __init__(self, sources: Iterable[Source] = ()) -> None:
        self._sources: dict[str, Source] = {}
        for source in sources:
            self.add(source)

    @classmethod
    def from_file(cls, path: Path) -> YamlSourceRegistry:
        if not path.exists():
            log.warning("sources_file_not_found", path=str(path))
            return cls()
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise SourceValidationError(f"{path}: sources YAML must be a mapping")
        try:
            parsed = SourcesFile.model_validate(raw)
        except ValidationError as exc:
            raise SourceValidationError(f"{path}: {exc}") from exc

        registry = cls(d.to_source() for d in parsed.sources)
        log.info("sources_loaded", count=len(registry), path=str(path))
        return registry

    def __len__(self) -> int:
        return len(self._sources)

    def add(self, source: Source) -> None:
        if source.id in self._sources:
            raise DuplicateSourceError(f"Duplicate source id: {source.id!r}")
        self._sources[source.id] = source

    # ------------------------------------------------------------------
    # SourceRegistryPort
    # ------------------------------------------------------------------

    def get(self, source_id: str) -> Source:
        try:
            return self._sources[source_id]
        except KeyError:
            raise SourceNotFoundError(source_id) from None

    def list_ids(self) -> list[str]:
        return sorted(self._sources)

    def all_sources(self) -> list[Source]:
        return sorted(self._sources.values(), key=lambda s: s.sort_key)

    def enabled_searchable_sources(self) -> list[Source]:
        """Enabled + searchable sources, best current priority first."""
        return [s for s in self.all_sources() if s.enabled and s.searchable]

    # ------------------------------------------------------------------
    # HealthTrackerPort
    # ------------------------------------------------------------------

    def record_success(self, source: Source) -> None:
        tracked = self._sources.get(source.id, source)
        tracked.on_success()

    def record_failure(self, source: Source) -> None:
        tracked = self._sources.get(source.id, source)
        tracked.on_failure()
        log.debug(
            "source_failure_recorded",
            source_id=tracked.id,
            consecutive_failures=tracked.consecutive_failures,
            current_priority=tracked.current_priority,
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def reset_priority(self, source_id: str) -> None:
        self.get(source_id).reset_priority()

    def set_enabled(self, source_id: str, enabled: bool) -> None:
        self.get(source_id).enabled = enabled
        log.info("source_enabled_changed", source_id=source_id, enabled=enabled)

    def update_base_url(self, source_id: str, base_url: str) -> None:
        source = self.get(source_id)
        new_url = base_url.rstrip("/")
        if new_url != source.base_url:
            log.info(
                "source_base_url_updated",
                source_id=source_id,
                old=source.base_url,
                new=new_url,
            )
            source.base_url = new_url

    def snapshot(self) -> list[dict[str, Any]]:
        """Diagnostic view of every source's health and priority."""
        return [
            {
                "id": s.id,
                "label": s.label,
                "base_url": s.base_url,
                "enabled": s.enabled,
                "searchable": s.searchable,
                "requires_browser": s.requires_browser,
                "base_priority": s.base_priority,
                "current_priority": s.current_priority,
                "consecutive_failures": s.consecutive_failures,
                "total_successes": s.total_successes,
                "total_failures": s.total_failures,
                "last_success_at": s.last_success_at,
                "last_failure_at": s.last_failure_at,
            }
            for s in self.all_sources()
        ]
