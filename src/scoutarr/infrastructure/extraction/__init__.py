from .registry import ExtractorRegistry
from .selector_extractor import SelectorExtractor, SelectorSpec

__all__ = ["ExtractorRegistry", "SelectorExtractor", "SelectorSpec"]
