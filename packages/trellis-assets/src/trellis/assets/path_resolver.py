import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from trellis.common import RealFileSystem, is_local_reference, is_relative_url
from trellis.spec import AssetBundle, FileSystemAdapter

from .publisher import AssetPublisher

log = logging.getLogger(__name__)

# Asset map values with this prefix are relative to the public web root.
PUBLIC_ALIAS = "@web/"


class AssetPathResolver:
    """
    Turns an asset reference of a bundle into a public URL or a physical path,
    applying the asset map overrides first.

    The asset map is walked in its configured order and the first key that is a
    trailing substring of the asset wins, even when a later key is longer.
    Callers control precedence through declaration order.
    """

    def __init__(
        self,
        publisher: AssetPublisher,
        asset_map: Optional[Dict[str, str]] = None,
        public_path: Optional[Path] = None,
        public_url: str = "",
        append_timestamp: bool = False,
        fs: Optional[FileSystemAdapter] = None,
    ):
        self.publisher = publisher
        self.asset_map = dict(asset_map or {})
        self.public_path = public_path
        self.public_url = public_url.rstrip("/")
        self.append_timestamp = append_timestamp
        self.fs = fs or RealFileSystem()

    def resolve(self, bundle: AssetBundle, asset: str) -> Optional[str]:
        """Returns the mapped replacement for ``asset``, or None when it is not overridden."""
        if asset in self.asset_map:
            return self.asset_map[asset]

        if bundle.source_path is not None and is_relative_url(asset):
            asset = f"{bundle.source_path}/{asset}"

        n = len(asset)
        for key, value in self.asset_map.items():
            if len(key) <= n and asset.endswith(key):
                return value
        return None

    def asset_url(self, bundle: AssetBundle, asset: str) -> str:
        asset, base_path, base_url = self._locate(bundle, asset)

        if not is_local_reference(asset):
            return asset

        url = f"{base_url}/{asset}"
        if self.append_timestamp and base_path is not None:
            timestamp = self._timestamp(base_path / asset)
            if timestamp:
                return f"{url}?v={timestamp}"
        return url

    def asset_path(self, bundle: AssetBundle, asset: str) -> Optional[Path]:
        """
        Returns None when the asset resolves to an absolute URL or no base path
        is known. Domain-relative references (``/x.js``) are taken as relative
        to the base path.
        """
        asset, base_path, _ = self._locate(bundle, asset)
        if base_path is None or not is_relative_url(asset):
            return None
        return base_path / asset.lstrip("/")

    def _locate(
        self, bundle: AssetBundle, asset: str
    ) -> Tuple[str, Optional[Path], str]:
        actual = self.resolve(bundle, asset)
        if actual is None:
            base_path = Path(bundle.base_path) if bundle.base_path is not None else None
            return asset, base_path, (bundle.base_url or "").rstrip("/")

        if actual.startswith(PUBLIC_ALIAS):
            return actual[len(PUBLIC_ALIAS) :], self.public_path, self.public_url
        return actual, self.publisher.base_path, self.publisher.base_url

    def _timestamp(self, path: Path) -> Optional[int]:
        try:
            mtime = int(self.fs.mtime(path))
        except OSError:
            # Missing files simply get no cache-busting parameter.
            log.debug(f"Cannot stat {path}, skipping timestamp.")
            return None
        return mtime if mtime > 0 else None
