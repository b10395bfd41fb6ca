__path__ = __import__("pkgutil").extend_path(__path__, __name__)

from .loader import (
    AssetConfig,
    ConverterConfig,
    DEFAULT_HASH_VERSION,
    load_config_from_path,
    parse_config,
    parse_mode,
)

__all__ = [
    "AssetConfig",
    "ConverterConfig",
    "DEFAULT_HASH_VERSION",
    "load_config_from_path",
    "parse_config",
    "parse_mode",
]
