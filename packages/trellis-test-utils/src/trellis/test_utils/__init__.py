__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .filesystem import SpyFileSystem
from .helpers import create_test_manager, fixed_hash
from .workspace import WorkspaceFactory, touch

__all__ = [
    "SpyFileSystem",
    "WorkspaceFactory",
    "create_test_manager",
    "fixed_hash",
    "touch",
]
