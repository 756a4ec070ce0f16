"""Resolve the extraction strategy for a source id."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from scoutarr.domain.entities.search import ResultItem
from scoutarr.domain.entities.source import Source
from scoutarr.infrastructure.extraction.selector_extractor import (
    SelectorExtractor,
    SelectorSpec,
)

log = structlog.get_logger(__name__)


class ExtractorRegistry:
    """ExtractorPort keyed by source id.

    Sources with a ``selectors.item`` entry get a site-specific extractor;
    the rest (and unknown ids) use the generic card extractor.
    """

    def __init__(self) -> None:
        self._extractors: dict[str, SelectorExtractor] = {}

    @classmethod
    def from_sources(cls, sources: Iterable[Source]) -> ExtractorRegistry:
        registry = cls()
        for source in sources:
            registry.register_source(source)
        return registry

    def register(self, extractor: SelectorExtractor) -> None:
        self._extractors[extractor.source_id] = extractor

    def register_source(self, source: Source) -> None:
        spec = SelectorSpec.from_mapping(source.selectors) if source.selectors.get("item") else None
        self.register(
            SelectorExtractor(
                source.id,
                source=source,
                spec=spec,
            )
        )
        log.debug("extractor_registered", source_id=source.id, generic=spec is None)

    def get(self, source_id: str) -> SelectorExtractor:
        extractor = self._extractors.get(source_id)
        if extractor is None:
            extractor = SelectorExtractor(source_id)
            self._extractors[source_id] = extractor
        return extractor

    def extract_search_results(self, source_id: str, content: str) -> list[ResultItem]:
        return self.get(source_id).extract(content)
