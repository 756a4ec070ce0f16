"""scoutarr: multi-source title search with graceful degradation."""

__version__ = "0.1.0"
