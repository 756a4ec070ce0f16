from .search import (
    AlternativeSource,
    ContentType,
    FetchTask,
    ResultItem,
    SearchEnrichment,
    SearchState,
    SearchStatus,
)
from .source import MAX_PRIORITY_PENALTY, Source

__all__ = [
    "MAX_PRIORITY_PENALTY",
    "AlternativeSource",
    "ContentType",
    "FetchTask",
    "ResultItem",
    "SearchEnrichment",
    "SearchState",
    "SearchStatus",
    "Source",
]
