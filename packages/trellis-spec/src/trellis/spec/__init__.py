# This must be the very first line to allow this package to coexist with other
# namespace packages in editable installs.
__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .errors import (
    AssetError,
    ConfigurationError,
    AssetNotFoundError,
    CircularDependencyError,
    PositionConflictError,
    AssetConversionError,
)
from .models import (
    Position,
    CopyOptions,
    AssetFile,
    AssetBundle,
    PublishedAsset,
    InProgress,
    Registered,
    Emitted,
    RegistrationState,
    PageAssets,
)
from .protocols import (
    FileSystemAdapter,
    HashStrategyProtocol,
    BundleConfigEntry,
    BundleConfigSourceProtocol,
    BundleFactoryProtocol,
    AssetConverterProtocol,
)

__all__ = [
    # Errors
    "AssetError",
    "ConfigurationError",
    "AssetNotFoundError",
    "CircularDependencyError",
    "PositionConflictError",
    "AssetConversionError",
    # Models
    "Position",
    "CopyOptions",
    "AssetFile",
    "AssetBundle",
    "PublishedAsset",
    "PageAssets",
    # Registration States
    "InProgress",
    "Registered",
    "Emitted",
    "RegistrationState",
    # Protocols
    "FileSystemAdapter",
    "HashStrategyProtocol",
    "BundleConfigEntry",
    "BundleConfigSourceProtocol",
    "BundleFactoryProtocol",
    "AssetConverterProtocol",
]
