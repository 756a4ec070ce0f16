"""JSON presenter for search states."""

from __future__ import annotations

import json
from typing import Any

from scoutarr.domain.entities.search import ResultItem, SearchEnrichment, SearchState


def render_item(item: ResultItem) -> dict[str, Any]:
    return {
        "title": item.title,
        "page_url": item.page_url,
        "source_id": item.source_id,
        "source_label": item.source_label,
        "poster_url": item.poster_url,
        "content_type": item.content_type.value,
        "year": item.year,
        "dedup_key": item.dedup_key,
        "categories": list(item.categories),
        "alternative_sources": [
            {
                "source_id": alt.source_id,
                "source_label": alt.source_label,
                "page_url": alt.page_url,
            }
            for alt in item.alternative_sources
        ],
    }


def render_enrichment(enrichment: SearchEnrichment | None) -> dict[str, Any] | None:
    if enrichment is None:
        return None
    return {
        "tmdb_id": enrichment.tmdb_id,
        "original_title": enrichment.original_title,
        "year": enrichment.year,
        "content_type": enrichment.content_type.value if enrichment.content_type else None,
    }


def render_state(state: SearchState) -> dict[str, Any]:
    """Render a state as a JSON-ready dict."""
    return {
        "status": state.status.value,
        "query": state.query,
        "generation": state.generation,
        "pending_count": state.pending_count,
        "error_message": state.error_message,
        "enrichment": render_enrichment(state.enrichment),
        "result_count": len(state.results),
        "results": [render_item(item) for item in state.results],
    }


def render_state_json(state: SearchState) -> str:
    return json.dumps(render_state(state), ensure_ascii=False)


def render_sse_event(state: SearchState) -> str:
    """One server-sent event carrying *state*."""
    return f"event: state\nid: {state.generation}\ndata: {render_state_json(state)}\n\n"
