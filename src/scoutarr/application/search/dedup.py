"""Order-preserving deduplication of result lists."""

from __future__ import annotations

from collections.abc import Iterable
from itertools import chain

from scoutarr.domain.entities.search import FetchTask, ResultItem


def merge_results(
    base: Iterable[ResultItem],
    incoming: Iterable[ResultItem] = (),
) -> list[ResultItem]:
    """Merge *incoming* into *base*, collapsing items that share a dedup key.

    ``base`` is folded before ``incoming``, so the primary kept for a key is
    always the first one seen (the highest-priority source).  Later items
    with the same key are recorded in the primary's
    ``alternative_sources`` together with any alternatives they had already
    absorbed, which keeps repeated merges associative.

    Items with an empty ``dedup_key`` are never merged.  Inputs are not
    mutated.
    """
    merged: list[ResultItem] = []
    primary_index: dict[str, int] = {}

    for item in chain(base, incoming):
        key = item.dedup_key
        if not key:
            merged.append(item)
            continue

        idx = primary_index.get(key)
        if idx is None:
            primary_index[key] = len(merged)
            merged.append(item)
            continue

        primary = merged[idx].with_alternative(item.as_alternative())
        for alt in item.alternative_sources:
            primary = primary.with_alternative(alt)
        merged[idx] = primary

    return merged


def distinct_source_count(tasks: Iterable[FetchTask]) -> int:
    """Count distinct sources among *tasks* (fan-out tasks share a source)."""
    return len({t.source_id for t in tasks})
