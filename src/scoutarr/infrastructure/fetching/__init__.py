from .browser_fetcher import BrowserFetcher
from .direct_fetcher import DirectHttpFetcher
from .hybrid_fetcher import HybridFetcher

__all__ = ["BrowserFetcher", "DirectHttpFetcher", "HybridFetcher"]
