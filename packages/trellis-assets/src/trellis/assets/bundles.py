import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from trellis.common import is_relative_url
from trellis.spec import (
    AssetBundle,
    AssetConverterProtocol,
    BundleConfigSourceProtocol,
    ConfigurationError,
)

from .publisher import AssetPublisher

log = logging.getLogger(__name__)


class BundleFactory:
    """
    Holds bundle definitions and hands out fresh, independent copies of them.

    A definition is never mutated: every ``create`` call deep-copies it before
    applying overrides, so position adoption or publishing on one copy cannot
    leak into another render pass.
    """

    def __init__(
        self, definitions: Optional[Dict[str, Union[AssetBundle, Dict[str, Any]]]] = None
    ):
        self._definitions: Dict[str, AssetBundle] = {}
        for name, definition in (definitions or {}).items():
            self.define(name, definition)

    def define(self, name: str, definition: Union[AssetBundle, Dict[str, Any]]) -> None:
        if isinstance(definition, AssetBundle):
            bundle = copy.deepcopy(definition)
            bundle.name = name
        else:
            bundle = AssetBundle.from_dict(name, definition)
        self._definitions[name] = bundle

    def is_defined(self, name: str) -> bool:
        return name in self._definitions

    def names(self) -> List[str]:
        return list(self._definitions)

    def create(self, name: str, overrides: Optional[Dict[str, Any]] = None) -> AssetBundle:
        definition = self._definitions.get(name)
        if definition is None:
            if overrides is not None:
                # Configuration alone may fully describe a bundle.
                return AssetBundle.from_dict(name, overrides)
            raise ConfigurationError(f"Unknown asset bundle: {name}")
        return definition.with_overrides(overrides or {})


class BundleLoader:
    """
    Applies the configuration source on top of the factory and prepares bundles
    for use: publishing their sources and converting their files.
    """

    def __init__(
        self,
        factory: BundleFactory,
        publisher: AssetPublisher,
        config_source: Optional[BundleConfigSourceProtocol] = None,
        enabled: bool = True,
        converter: Optional[AssetConverterProtocol] = None,
    ):
        self.factory = factory
        self.publisher = publisher
        self.config_source = config_source
        self.enabled = enabled
        self.converter = converter

    def load(self, name: str) -> AssetBundle:
        if not self.enabled:
            return AssetBundle.dummy(name)

        entry = self.config_source.get(name) if self.config_source is not None else None
        if entry is False:
            log.debug(f"Asset bundle '{name}' is disabled, using a dummy bundle.")
            return AssetBundle.dummy(name)
        if isinstance(entry, AssetBundle):
            return copy.deepcopy(entry)
        if entry is None or isinstance(entry, dict):
            return self.factory.create(name, entry)
        raise ConfigurationError(f"Invalid asset bundle configuration: {name}")

    def publish(self, bundle: AssetBundle) -> None:
        if bundle.is_dummy:
            return

        if bundle.source_path is not None and (
            bundle.base_path is None or bundle.base_url is None
        ):
            published = self.publisher.publish(bundle.source_path, bundle.publish_options)
            bundle.base_path = str(published.path)
            bundle.base_url = published.url

        if bundle.base_path is not None and self.converter is not None:
            self._convert(bundle, Path(bundle.base_path))

    def _convert(self, bundle: AssetBundle, base_path: Path) -> None:
        for asset in bundle.css + bundle.js:
            if is_relative_url(asset.path):
                asset.path = self.converter.convert(asset.path, base_path)
