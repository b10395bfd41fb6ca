__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .filesystem import RealFileSystem, ensure_idempotent, passes_filters
from .urls import is_relative_url, is_local_reference
from .yaml_adapter import YamlAdapter

__all__ = [
    "RealFileSystem",
    "ensure_idempotent",
    "passes_filters",
    "is_relative_url",
    "is_local_reference",
    "YamlAdapter",
]
