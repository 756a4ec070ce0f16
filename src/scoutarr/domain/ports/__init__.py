from .cache import CachePort
from .extractor import ExtractorPort
from .fetcher import FetcherPort
from .result_sink import ResultSinkPort
from .source_registry import HealthTrackerPort, SourceRegistryPort

__all__ = [
    "CachePort",
    "ExtractorPort",
    "FetcherPort",
    "HealthTrackerPort",
    "ResultSinkPort",
    "SourceRegistryPort",
]
