__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .bundles import BundleFactory, BundleLoader
from .converter import DEFAULT_COMMANDS, AssetConverter
from .graph import build_bundle_graph, detect_circular_dependencies, load_order
from .hashing import CallableHashStrategy, Crc32HashStrategy
from .manager import AssetManager
from .path_resolver import PUBLIC_ALIAS, AssetPathResolver
from .publisher import AssetPublisher, skip_dotfiles
from .registry import BundleRegistry

__all__ = [
    "AssetManager",
    "AssetPublisher",
    "AssetPathResolver",
    "BundleRegistry",
    "BundleFactory",
    "BundleLoader",
    "AssetConverter",
    "DEFAULT_COMMANDS",
    "Crc32HashStrategy",
    "CallableHashStrategy",
    "PUBLIC_ALIAS",
    "skip_dotfiles",
    "build_bundle_graph",
    "detect_circular_dependencies",
    "load_order",
]
