import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from trellis.config import AssetConfig
from trellis.spec import (
    AssetBundle,
    AssetConverterProtocol,
    CopyOptions,
    FileSystemAdapter,
    HashStrategyProtocol,
    PageAssets,
    PublishedAsset,
)

from .bundles import BundleFactory, BundleLoader
from .converter import AssetConverter
from .graph import build_bundle_graph, detect_circular_dependencies
from .path_resolver import AssetPathResolver
from .publisher import AssetPublisher
from .registry import BundleRegistry, PositionLike

log = logging.getLogger(__name__)


class AssetManager:
    """
    Entry point for the rendering layer.

    A render pass is bracketed by ``begin_render``/``end_render``; bundles
    registered in between are emitted once into the returned ``PageAssets``.
    The publisher (and its publish memo) outlives render passes.
    """

    def __init__(
        self,
        publisher: AssetPublisher,
        loader: BundleLoader,
        resolver: AssetPathResolver,
    ):
        self.publisher = publisher
        self.loader = loader
        self.resolver = resolver
        self._registry = BundleRegistry(loader, resolver)

    @classmethod
    def from_config(
        cls,
        config: AssetConfig,
        fs: Optional[FileSystemAdapter] = None,
        hash_strategy: Union[HashStrategyProtocol, Callable[[Path], str], None] = None,
        converter: Optional[AssetConverterProtocol] = None,
    ) -> "AssetManager":
        publisher = AssetPublisher(
            base_path=config.base_path,
            base_url=config.base_url,
            fs=fs,
            hash_strategy=hash_strategy,
            link_assets=config.link_assets,
            force_copy=config.force_copy,
            dir_mode=config.dir_mode,
            file_mode=config.file_mode,
            hash_version=config.hash_version,
        )
        publisher.validate_base_path()

        if converter is None and config.converter is not None:
            converter = AssetConverter(
                commands=config.converter.commands or None,
                force_convert=config.converter.force_convert,
                fs=publisher.fs,
            )

        loader = BundleLoader(
            factory=BundleFactory(config.definitions),
            publisher=publisher,
            config_source=config.bundles,
            enabled=config.bundles_enabled,
            converter=converter,
        )
        resolver = AssetPathResolver(
            publisher,
            asset_map=config.asset_map,
            public_path=config.public_path,
            public_url=config.public_url,
            append_timestamp=config.append_timestamp,
            fs=publisher.fs,
        )
        return cls(publisher, loader, resolver)

    @property
    def registry(self) -> BundleRegistry:
        return self._registry

    # --- Render pass ---

    def begin_render(self) -> BundleRegistry:
        self._registry = BundleRegistry(self.loader, self.resolver)
        return self._registry

    def end_render(self, page: Optional[PageAssets] = None) -> PageAssets:
        page = self._registry.emit_all(page)
        self._registry.clear()
        return page

    def register_bundle(self, name: str, position: PositionLike = None) -> AssetBundle:
        return self._registry.register(name, position)

    # --- Asset lookups ---

    def url_for(self, bundle: AssetBundle, asset: str) -> str:
        self.loader.publish(bundle)
        return self.resolver.asset_url(bundle, asset)

    def path_for(self, bundle: AssetBundle, asset: str) -> Optional[Path]:
        self.loader.publish(bundle)
        return self.resolver.asset_path(bundle, asset)

    # --- Publishing ---

    def publish(
        self, path: Union[str, Path], options: Optional[CopyOptions] = None
    ) -> PublishedAsset:
        return self.publisher.publish(path, options)

    def get_published_path(self, path: Union[str, Path]) -> Optional[Path]:
        return self.publisher.get_published_path(path)

    def get_published_url(self, path: Union[str, Path]) -> Optional[str]:
        return self.publisher.get_published_url(path)

    # --- Checks ---

    def check_dependencies(self, names: Optional[Iterable[str]] = None) -> List[List[str]]:
        if names is None:
            names = self.loader.factory.names()
            if isinstance(self.loader.config_source, dict):
                names += [n for n in self.loader.config_source if n not in names]
        graph = build_bundle_graph(self.loader, names)
        return detect_circular_dependencies(graph)
