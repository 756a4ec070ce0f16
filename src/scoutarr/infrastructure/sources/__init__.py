from .registry import YamlSourceRegistry
from .schema import SourceDefinition, SourcesFile

__all__ = ["SourceDefinition", "SourcesFile", "YamlSourceRegistry"]
