import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

from trellis.common import YamlAdapter
from trellis.spec import ConfigurationError

log = logging.getLogger(__name__)

DEFAULT_HASH_VERSION = "1.0"


@dataclass
class ConverterConfig:
    # extension -> (target extension, shell command template with {from} and {to})
    commands: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    force_convert: bool = False


@dataclass
class AssetConfig:
    root_path: Path
    base_path: Path
    base_url: str = "/assets"
    public_path: Optional[Path] = None
    public_url: str = ""
    append_timestamp: bool = False
    link_assets: bool = False
    force_copy: bool = False
    dir_mode: int = 0o775
    file_mode: Optional[int] = None
    hash_version: str = DEFAULT_HASH_VERSION
    asset_map: Dict[str, str] = field(default_factory=dict)
    bundles_enabled: bool = True
    # name -> override dict, or False for a disabled bundle
    bundles: Dict[str, Union[Dict[str, Any], bool]] = field(default_factory=dict)
    # Bundle definitions loaded from the YAML bundles file.
    definitions: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    converter: Optional[ConverterConfig] = None

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self.public_url = self.public_url.rstrip("/")
        if self.public_path is None:
            self.public_path = self.base_path.parent


def _find_pyproject_toml(search_path: Path) -> Path:
    current_dir = search_path.resolve()
    while current_dir.parent != current_dir:
        pyproject_path = current_dir / "pyproject.toml"
        if pyproject_path.is_file():
            return pyproject_path
        current_dir = current_dir.parent
    raise FileNotFoundError("Could not find pyproject.toml in any parent directory.")


def _expect(data: Dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key, default)
    if value is default:
        return value
    if not isinstance(value, kind):
        raise ConfigurationError(
            f"[tool.trellis] '{key}' must be of type {kind.__name__}, got {value!r}"
        )
    return value


def parse_mode(value: Union[int, str, None], key: str = "mode") -> Optional[int]:
    if value is None or (isinstance(value, int) and not isinstance(value, bool)):
        return value
    if isinstance(value, str):
        digits = value.strip().lower()
        if digits.startswith("0o"):
            digits = digits[2:]
        try:
            return int(digits, 8)
        except ValueError:
            pass
    raise ConfigurationError(f"[tool.trellis] '{key}' is not a valid octal mode: {value!r}")


def _resolve_paths(data: Dict[str, Any], root: Path) -> Dict[str, Any]:
    resolved = dict(data)
    for key in ("source_path", "base_path"):
        value = resolved.get(key)
        if isinstance(value, str):
            resolved[key] = str(root / value)
    return resolved


def _parse_converter(data: Any) -> ConverterConfig:
    if not isinstance(data, dict):
        raise ConfigurationError("[tool.trellis.converter] must be a table")
    commands: Dict[str, Tuple[str, str]] = {}
    for ext, spec in (data.get("commands") or {}).items():
        if (
            not isinstance(spec, (list, tuple))
            or len(spec) != 2
            or not all(isinstance(s, str) for s in spec)
        ):
            raise ConfigurationError(
                f"Converter command for '{ext}' must be [target_extension, command]"
            )
        commands[str(ext)] = (spec[0], spec[1])
    return ConverterConfig(
        commands=commands, force_convert=bool(data.get("force_convert", False))
    )


def parse_config(data: Dict[str, Any], root_path: Path) -> AssetConfig:
    root_path = root_path.resolve()

    bundles_value = data.get("bundles", {})
    if bundles_value is False:
        bundles_enabled, bundles = False, {}
    elif isinstance(bundles_value, dict):
        bundles_enabled = True
        bundles = {}
        for name, override in bundles_value.items():
            if override is False:
                bundles[name] = False
            elif isinstance(override, dict):
                bundles[name] = _resolve_paths(override, root_path)
            else:
                raise ConfigurationError(f"Invalid asset bundle configuration: {name}")
    else:
        raise ConfigurationError("[tool.trellis] 'bundles' must be a table or false")

    definitions: Dict[str, Dict[str, Any]] = {}
    bundles_file = _expect(data, "bundles_file", str, None)
    if bundles_file:
        bundles_path = root_path / bundles_file
        if not bundles_path.is_file():
            raise ConfigurationError(f"Bundles file not found: {bundles_path}")
        raw = YamlAdapter().load(bundles_path)
        for name, definition in raw.items():
            if not isinstance(definition, dict):
                raise ConfigurationError(
                    f"Definition of asset bundle '{name}' in {bundles_file} must be a mapping"
                )
            definitions[name] = _resolve_paths(definition, root_path)

    asset_map = _expect(data, "asset_map", dict, {})
    public_path = _expect(data, "public_path", str, None)
    converter = data.get("converter")

    return AssetConfig(
        root_path=root_path,
        base_path=root_path / _expect(data, "base_path", str, "public/assets"),
        base_url=_expect(data, "base_url", str, "/assets"),
        public_path=root_path / public_path if public_path else None,
        public_url=_expect(data, "public_url", str, ""),
        append_timestamp=_expect(data, "append_timestamp", bool, False),
        link_assets=_expect(data, "link_assets", bool, False),
        force_copy=_expect(data, "force_copy", bool, False),
        dir_mode=parse_mode(data.get("dir_mode", 0o775), "dir_mode"),
        file_mode=parse_mode(data.get("file_mode"), "file_mode"),
        hash_version=str(data.get("hash_version", DEFAULT_HASH_VERSION)),
        asset_map={str(k): str(v) for k, v in asset_map.items()},
        bundles_enabled=bundles_enabled,
        bundles=bundles,
        definitions=definitions,
        converter=_parse_converter(converter) if converter is not None else None,
    )


def load_config_from_path(search_path: Path) -> AssetConfig:
    try:
        config_path = _find_pyproject_toml(search_path)
    except FileNotFoundError:
        # No config file: defaults relative to the search path.
        log.debug(f"No pyproject.toml found above {search_path}, using defaults.")
        return parse_config({}, search_path)

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Malformed {config_path}: {e}") from e

    trellis_data: Dict[str, Any] = data.get("tool", {}).get("trellis", {})
    return parse_config(trellis_data, config_path.parent)
