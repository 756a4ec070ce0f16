from .result_sink import CacheResultSink

__all__ = ["CacheResultSink"]
