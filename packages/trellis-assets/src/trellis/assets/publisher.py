import dataclasses
import logging
import os
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from trellis.common import RealFileSystem, ensure_idempotent
from trellis.spec import (
    AssetNotFoundError,
    ConfigurationError,
    CopyOptions,
    FileSystemAdapter,
    HashStrategyProtocol,
    PublishedAsset,
)

from .hashing import CallableHashStrategy, Crc32HashStrategy

log = logging.getLogger(__name__)

CopyHook = Callable[[Path, Path], bool]


def skip_dotfiles(src: Path, dest: Path) -> bool:
    return not src.name.startswith(".")


class AssetPublisher:
    """
    Deploys files and directories from a private source tree into ``base_path``
    under a hash-named directory, so identical inputs always map to the same
    destination.

    Publishing is memoized per instance by absolute source path. The destination
    tree is append-only: nothing here deletes or overwrites a hash directory
    except a copy-mode republish of a stale file or an explicit ``force_copy``.
    Concurrent publishers of the same source are expected and handled without
    locks, see ``ensure_idempotent``.
    """

    def __init__(
        self,
        base_path: Path,
        base_url: str,
        fs: Optional[FileSystemAdapter] = None,
        hash_strategy: Union[HashStrategyProtocol, Callable[[Path], str], None] = None,
        link_assets: bool = False,
        force_copy: bool = False,
        dir_mode: int = 0o775,
        file_mode: Optional[int] = None,
        hash_version: str = "1.0",
        before_copy: Optional[CopyHook] = None,
        after_copy: Optional[Callable[[Path, Path], None]] = None,
    ):
        self.base_path = base_path
        self.base_url = base_url.rstrip("/")
        self.fs = fs or RealFileSystem()
        self.link_assets = link_assets
        self.force_copy = force_copy
        self.dir_mode = dir_mode
        self.file_mode = file_mode
        self.before_copy = before_copy
        self.after_copy = after_copy

        if hash_strategy is None:
            hash_strategy = Crc32HashStrategy(hash_version, link_assets, self.fs)
        elif not hasattr(hash_strategy, "compute"):
            hash_strategy = CallableHashStrategy(hash_strategy)
        self.hash_strategy = hash_strategy

        # Absolute source path -> published location. Never invalidated: a changed
        # source gets a new hash directory instead.
        self._published: Dict[str, PublishedAsset] = {}

    def validate_base_path(self) -> None:
        if not self.fs.is_dir(self.base_path):
            raise ConfigurationError(f"The directory does not exist: {self.base_path}")
        if not self.fs.is_writable(self.base_path):
            raise ConfigurationError(
                f"The directory is not writable by the Web process: {self.base_path}"
            )

    def hash(self, path: Path) -> str:
        return self.hash_strategy.compute(path)

    def publish(
        self, path: Union[str, Path], options: Optional[CopyOptions] = None
    ) -> PublishedAsset:
        key = os.path.abspath(path)
        if key in self._published:
            return self._published[key]

        src = Path(os.path.realpath(path))
        if not self.fs.exists(src):
            raise AssetNotFoundError(str(path))

        if self.fs.is_file(src):
            published = self.publish_file(src)
        else:
            published = self.publish_directory(src, options)

        self._published[key] = published
        return published

    def publish_file(self, src: Path) -> PublishedAsset:
        dir_name = self.hash(src)
        dst_dir = self.base_path / dir_name
        dst_file = dst_dir / src.name

        if not self.fs.is_dir(dst_dir):
            self.fs.mkdir_all(dst_dir, self.dir_mode)

        if self.link_assets:
            if not self.fs.exists(dst_file):
                ensure_idempotent(
                    lambda: self.fs.symlink(src, dst_file),
                    lambda: self.fs.exists(dst_file),
                )
        elif self._is_stale(src, dst_file):
            log.debug(f"Copying {src} -> {dst_file}")
            self.fs.copy_file(src, dst_file)
            if self.file_mode is not None:
                self.fs.chmod(dst_file, self.file_mode)

        return PublishedAsset(dst_file, f"{self.base_url}/{dir_name}/{src.name}")

    def publish_directory(
        self, src: Path, options: Optional[CopyOptions] = None
    ) -> PublishedAsset:
        options = options or CopyOptions()
        dir_name = self.hash(src)
        dst_dir = self.base_path / dir_name

        if self.link_assets:
            if not self.fs.is_dir(dst_dir):
                self.fs.mkdir_all(dst_dir.parent, self.dir_mode)
                ensure_idempotent(
                    lambda: self.fs.symlink(src, dst_dir),
                    lambda: self.fs.is_dir(dst_dir),
                )
        else:
            force_copy = (
                options.force_copy if options.force_copy is not None else self.force_copy
            )
            # Directory mtimes do not track nested content, so an existing
            # destination is taken as up to date unless a copy is forced.
            if force_copy or not self.fs.is_dir(dst_dir):
                log.debug(f"Copying directory {src} -> {dst_dir}")
                self.fs.copy_tree(src, dst_dir, self._copy_options(options))

        return PublishedAsset(dst_dir, f"{self.base_url}/{dir_name}")

    def get_published_path(self, path: Union[str, Path]) -> Optional[Path]:
        key = os.path.abspath(path)
        if key in self._published:
            return self._published[key].path

        src = Path(os.path.realpath(path))
        if not self.fs.exists(src):
            return None
        dst = self.base_path / self.hash(src)
        return dst / src.name if self.fs.is_file(src) else dst

    def get_published_url(self, path: Union[str, Path]) -> Optional[str]:
        key = os.path.abspath(path)
        if key in self._published:
            return self._published[key].url

        src = Path(os.path.realpath(path))
        if not self.fs.exists(src):
            return None
        url = f"{self.base_url}/{self.hash(src)}"
        return f"{url}/{src.name}" if self.fs.is_file(src) else url

    def _is_stale(self, src: Path, dst: Path) -> bool:
        try:
            dst_mtime = self.fs.mtime(dst)
        except FileNotFoundError:
            return True
        return dst_mtime < self.fs.mtime(src)

    def _copy_options(self, options: CopyOptions) -> CopyOptions:
        return dataclasses.replace(
            options,
            dir_mode=self.dir_mode,
            file_mode=self.file_mode,
            copy_empty_directories=False,
            before_copy=options.before_copy or self.before_copy or skip_dotfiles,
            after_copy=options.after_copy or self.after_copy,
        )
