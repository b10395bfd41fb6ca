from pathlib import Path
from typing import Any, Dict, Optional

from trellis.assets import AssetManager
from trellis.config import AssetConfig, parse_config
from trellis.spec import FileSystemAdapter


def fixed_hash(path: Path) -> str:
    """Deterministic hash strategy: the source's own name."""
    return path.name.replace(".", "-")


def create_test_manager(
    root_path: Path,
    config: Optional[Dict[str, Any]] = None,
    fs: Optional[FileSystemAdapter] = None,
    **kwargs: Any,
) -> AssetManager:
    """
    Builds an AssetManager over ``root_path`` from a ``[tool.trellis]``-style
    dict, creating the publish base directory first.
    """
    asset_config: AssetConfig = parse_config(config or {}, root_path)
    asset_config.base_path.mkdir(parents=True, exist_ok=True)
    return AssetManager.from_config(asset_config, fs=fs, **kwargs)
