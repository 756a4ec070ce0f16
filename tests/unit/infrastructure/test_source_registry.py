"""Tests for the YAML source registry and its health tracking."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from scoutarr.domain.entities.source import MAX_PRIORITY_PENALTY
from scoutarr.domain.exceptions import (
    DuplicateSourceError,
    SourceNotFoundError,
    SourceValidationError,
)
from scoutarr.infrastructure.sources.registry import YamlSourceRegistry
from scoutarr.infrastructure.sources.schema import SourceDefinition


def _write(tmp_path: Path, data: object) -> Path:
    path = tmp_path / "sources.yaml"
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
    return path


class TestFromFile:
    def test_loads_definitions(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            {
                "sources": [
                    {
                        "id": "arabseed",
                        "base_url": "https://a.asd.homes/",
                        "label": "ArabSeed",
                        "priority": 3,
                        "search_pattern": "/find/?word={query}",
                        "sub_queries": ["&type=movies", "&type=series"],
                        "selectors": {"item": ".MovieBlock", "link": "a", "exclude_url": ["game"]},
                    },
                    {"id": "mycima", "base_url": "https://mycima.example", "priority": 1},
                ]
            },
        )

        registry = YamlSourceRegistry.from_file(path)

        assert len(registry) == 2
        assert registry.list_ids() == ["arabseed", "mycima"]
        arabseed = registry.get("arabseed")
        assert arabseed.base_url == "https://a.asd.homes"
        assert arabseed.label == "ArabSeed"
        assert arabseed.sub_queries == ("&type=movies", "&type=series")
        assert arabseed.selectors == {"item": ".MovieBlock", "link": "a", "exclude_url": "game"}

    def test_missing_file_gives_empty_registry(self, tmp_path: Path) -> None:
        registry = YamlSourceRegistry.from_file(tmp_path / "missing.yaml")
        assert len(registry) == 0
        assert registry.enabled_searchable_sources() == []

    def test_invalid_definition_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path, {"sources": [{"id": "Bad Id", "base_url": "not a url"}]})
        with pytest.raises(SourceValidationError):
            YamlSourceRegistry.from_file(path)

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path, ["a", "b"])
        with pytest.raises(SourceValidationError):
            YamlSourceRegistry.from_file(path)

    def test_duplicate_ids_rejected(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            {
                "sources": [
                    {"id": "a", "base_url": "https://a.example"},
                    {"id": "a", "base_url": "https://b.example"},
                ]
            },
        )
        with pytest.raises(DuplicateSourceError):
            YamlSourceRegistry.from_file(path)

    def test_bundled_sources_file_is_valid(self) -> None:
        path = Path(__file__).parents[3] / "sources" / "sources.yaml"
        registry = YamlSourceRegistry.from_file(path)
        assert len(registry) >= 1


class TestSourceDefinition:
    def test_search_pattern_needs_placeholder(self) -> None:
        with pytest.raises(ValueError):
            SourceDefinition(id="a", base_url="https://a.example", search_pattern="/search")

    def test_negative_priority_rejected(self) -> None:
        with pytest.raises(ValueError):
            SourceDefinition(id="a", base_url="https://a.example", priority=-1)

    def test_invalid_css_selector_rejected(self) -> None:
        with pytest.raises(ValueError, match="invalid CSS selector"):
            SourceDefinition(
                id="a",
                base_url="https://a.example",
                selectors={"item": ".GridItem", "title": "strong["},
            )


class TestOrdering:
    def test_sorted_by_current_priority(self, make_source) -> None:
        registry = YamlSourceRegistry(
            [make_source("c", 3), make_source("a", 1), make_source("b", 2)]
        )
        assert [s.id for s in registry.enabled_searchable_sources()] == ["a", "b", "c"]

    def test_tie_broken_by_base_priority_then_id(self, make_source) -> None:
        first = make_source("z", 1)
        second = make_source("y", 2)
        registry = YamlSourceRegistry([first, second])

        registry.record_failure(first)
        assert first.current_priority == second.current_priority == 2
        assert [s.id for s in registry.enabled_searchable_sources()] == ["z", "y"]

        registry.record_failure(first)
        assert [s.id for s in registry.enabled_searchable_sources()] == ["y", "z"]

        registry.record_success(first)
        assert [s.id for s in registry.enabled_searchable_sources()] == ["z", "y"]

    def test_disabled_and_unsearchable_excluded(self, make_source) -> None:
        registry = YamlSourceRegistry(
            [
                make_source("a"),
                make_source("b", enabled=False),
                make_source("c", searchable=False),
            ]
        )
        assert [s.id for s in registry.enabled_searchable_sources()] == ["a"]
        assert len(registry.all_sources()) == 3


class TestHealth:
    def test_failures_capped(self, make_source) -> None:
        source = make_source("a", 2)
        registry = YamlSourceRegistry([source])

        for _ in range(MAX_PRIORITY_PENALTY + 5):
            registry.record_failure(source)

        assert source.current_priority == 2 + MAX_PRIORITY_PENALTY
        assert source.total_failures == MAX_PRIORITY_PENALTY + 5

    def test_health_applies_to_stored_source(self, make_source) -> None:
        stored = make_source("a")
        registry = YamlSourceRegistry([stored])

        registry.record_failure(make_source("a"))

        assert stored.consecutive_failures == 1

    def test_reset_priority(self, make_source) -> None:
        source = make_source("a")
        registry = YamlSourceRegistry([source])
        registry.record_failure(source)
        registry.record_failure(source)

        registry.reset_priority("a")

        assert source.current_priority == source.base_priority
        assert source.consecutive_failures == 0


class TestAdministration:
    def test_unknown_id(self) -> None:
        with pytest.raises(SourceNotFoundError):
            YamlSourceRegistry().get("nope")

    def test_set_enabled(self, make_source) -> None:
        registry = YamlSourceRegistry([make_source("a")])
        registry.set_enabled("a", False)
        assert registry.enabled_searchable_sources() == []

    def test_update_base_url(self, make_source) -> None:
        registry = YamlSourceRegistry([make_source("a")])
        registry.update_base_url("a", "https://a2.example/")
        assert registry.get("a").base_url == "https://a2.example"

    def test_snapshot(self, make_source) -> None:
        registry = YamlSourceRegistry([make_source("b", 2), make_source("a", 1)])
        snapshot = registry.snapshot()

        assert [row["id"] for row in snapshot] == ["a", "b"]
        assert snapshot[0]["current_priority"] == 1
        assert snapshot[0]["total_failures"] == 0
