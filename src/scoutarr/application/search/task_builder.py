"""Expand (source, query) pairs into fetch tasks.

Pure functions of their inputs: no network I/O happens here.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import quote_plus

from scoutarr.domain.entities.search import FetchTask
from scoutarr.domain.entities.source import Source

DEFAULT_SEARCH_PATTERN = "/?s={query}"
QUERY_PLACEHOLDER = "{query}"


def build_search_address(
    source: Source,
    query: str,
    *,
    default_pattern: str = DEFAULT_SEARCH_PATTERN,
) -> str:
    """Resolve the source's search pattern into a full address.

    The query is URL-escaped (spaces become ``+``).  Absolute patterns
    (``https://...``) are used as-is; relative ones are joined onto
    ``source.base_url``.
    """
    pattern = source.search_pattern or default_pattern
    resolved = pattern.replace(QUERY_PLACEHOLDER, quote_plus(query))
    if resolved.startswith(("http://", "https://")):
        return resolved
    if not resolved.startswith("/"):
        resolved = f"/{resolved}"
    return f"{source.base_url}{resolved}"


def _append_sub_query(address: str, suffix: str) -> str:
    # "&type=movies" on an address without a query string starts one.
    if suffix.startswith("&") and "?" not in address:
        return f"{address}?{suffix[1:]}"
    return f"{address}{suffix}"


def build_tasks(
    sources: Iterable[Source],
    query: str,
    *,
    default_pattern: str = DEFAULT_SEARCH_PATTERN,
) -> list[FetchTask]:
    """Build fetch tasks for every enabled, searchable source.

    Sources keep their input order, which callers pass in priority order.
    A source that declares ``sub_queries`` (e.g. separate movie and series
    endpoints) fans out into one task per sub-query.
    """
    query = query.strip()
    if not query:
        return []

    tasks: list[FetchTask] = []
    for source in sources:
        if not (source.enabled and source.searchable):
            continue
        address = build_search_address(source, query, default_pattern=default_pattern)
        if source.sub_queries:
            tasks.extend(
                FetchTask(source=source, address=_append_sub_query(address, suffix))
                for suffix in source.sub_queries
            )
        else:
            tasks.append(FetchTask(source=source, address=address))
    return tasks
