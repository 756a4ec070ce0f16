from .unified_search import SearchSettings, UnifiedSearchService

__all__ = ["SearchSettings", "UnifiedSearchService"]
