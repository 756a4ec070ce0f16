"""Tests for task building."""

from __future__ import annotations

from scoutarr.application.search.task_builder import build_search_address, build_tasks


class TestBuildSearchAddress:
    def test_default_pattern_and_escaping(self, make_source) -> None:
        source = make_source("a", base_url="https://a.example/")
        assert build_search_address(source, "the batman") == "https://a.example/?s=the+batman"

    def test_arabic_query_is_escaped(self, make_source) -> None:
        source = make_source("a", base_url="https://a.example")
        address = build_search_address(source, "باتمان")
        assert address.startswith("https://a.example/?s=%D8%A8")

    def test_source_pattern_overrides_default(self, make_source) -> None:
        source = make_source("a", search_pattern="/search?q={query}")
        assert build_search_address(source, "x y") == "https://a.example/search?q=x+y"

    def test_pattern_without_leading_slash(self, make_source) -> None:
        source = make_source("a", search_pattern="find/{query}")
        assert build_search_address(source, "dune") == "https://a.example/find/dune"

    def test_absolute_pattern_used_verbatim(self, make_source) -> None:
        source = make_source("a", search_pattern="https://api.other.example/s?q={query}")
        assert build_search_address(source, "dune") == "https://api.other.example/s?q=dune"

    def test_custom_default_pattern(self, make_source) -> None:
        source = make_source("a")
        assert (
            build_search_address(source, "dune", default_pattern="/search/{query}")
            == "https://a.example/search/dune"
        )


class TestBuildTasks:
    def test_one_task_per_source_in_order(self, make_source) -> None:
        sources = [make_source("a"), make_source("b"), make_source("c")]
        tasks = build_tasks(sources, "dune")
        assert [t.source_id for t in tasks] == ["a", "b", "c"]

    def test_disabled_and_unsearchable_skipped(self, make_source) -> None:
        sources = [
            make_source("a", enabled=False),
            make_source("b", searchable=False),
            make_source("c"),
        ]
        assert [t.source_id for t in build_tasks(sources, "dune")] == ["c"]

    def test_sub_queries_fan_out(self, make_source) -> None:
        source = make_source(
            "arabseed",
            search_pattern="/find/?word={query}",
            sub_queries=("&type=movies", "&type=series"),
        )
        tasks = build_tasks([source], "dune")
        assert [t.address for t in tasks] == [
            "https://arabseed.example/find/?word=dune&type=movies",
            "https://arabseed.example/find/?word=dune&type=series",
        ]
        assert all(t.source is source for t in tasks)

    def test_sub_query_starts_query_string_when_missing(self, make_source) -> None:
        source = make_source("a", search_pattern="/search/{query}", sub_queries=("&page=1",))
        (task,) = build_tasks([source], "dune")
        assert task.address == "https://a.example/search/dune?page=1"

    def test_blank_query_produces_no_tasks(self, make_source) -> None:
        assert build_tasks([make_source("a")], "   ") == []

    def test_query_is_trimmed(self, make_source) -> None:
        (task,) = build_tasks([make_source("a")], "  dune ")
        assert task.address == "https://a.example/?s=dune"
