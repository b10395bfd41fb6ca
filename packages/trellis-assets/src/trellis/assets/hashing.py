import zlib
from pathlib import Path
from typing import Callable, Optional

from trellis.common import RealFileSystem
from trellis.spec import FileSystemAdapter


class Crc32HashStrategy:
    """
    Default naming strategy for published asset directories.

    The signature covers the directory being published (a file contributes its
    containing directory, so sibling files referenced through relative ``url()``
    land in the same destination), its modification time, a version tag and the
    link-mode flag, so symlinked and copied publishes never share a destination.

    CRC32 collides far more often than a cryptographic hash. That is an accepted
    trade-off for short, stable path segments; supply another strategy through
    ``AssetPublisher(hash_strategy=...)`` when that risk matters.
    """

    def __init__(
        self,
        version: str,
        link_assets: bool = False,
        fs: Optional[FileSystemAdapter] = None,
    ):
        self.version = version
        self.link_assets = link_assets
        self.fs = fs or RealFileSystem()

    def signature(self, path: Path) -> str:
        base = path.parent if self.fs.is_file(path) else path
        mtime = int(self.fs.mtime(path))
        link_flag = "1" if self.link_assets else ""
        return f"{base}{mtime}{self.version}|{link_flag}"

    def compute(self, path: Path) -> str:
        checksum = zlib.crc32(self.signature(path).encode("utf-8")) & 0xFFFFFFFF
        return f"{checksum:08x}"


class CallableHashStrategy:
    """Adapts a plain ``path -> str`` function, e.g. for deterministic builds and tests."""

    def __init__(self, func: Callable[[Path], str]):
        self.func = func

    def compute(self, path: Path) -> str:
        return self.func(path)
