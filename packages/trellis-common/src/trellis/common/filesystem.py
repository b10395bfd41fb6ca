import logging
import os
import shutil
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable

from trellis.spec import CopyOptions

log = logging.getLogger(__name__)


def ensure_idempotent(
    operation: Callable[[], None], postcondition: Callable[[], bool]
) -> bool:
    """
    Runs a filesystem mutation that a concurrent writer may race us on.

    If ``operation`` fails with an OSError but ``postcondition`` holds afterwards,
    somebody else already produced the desired state and the failure is absorbed.
    Otherwise the original error propagates.

    Returns True when this call performed the mutation itself.
    """
    try:
        operation()
    except OSError as e:
        if not postcondition():
            raise
        log.debug(f"Tolerated concurrent filesystem race: {e}")
        return False
    return True


def _matches(rel_path: str, is_dir: bool, pattern: str, case_sensitive: bool) -> bool:
    if pattern.endswith("/"):
        if not is_dir:
            return False
        pattern = pattern.rstrip("/")
    if not case_sensitive:
        rel_path = rel_path.lower()
        pattern = pattern.lower()
    if "/" not in pattern:
        # Slash-free patterns are matched against the entry name only.
        return fnmatchcase(rel_path.rsplit("/", 1)[-1], pattern)
    return fnmatchcase(rel_path, pattern.lstrip("/"))


def passes_filters(rel_path: str, is_dir: bool, options: CopyOptions) -> bool:
    cs = options.case_sensitive
    if any(_matches(rel_path, is_dir, p, cs) for p in options.except_):
        return False
    # "only" restricts files; directories are always descended into.
    if is_dir or not options.only:
        return True
    return any(_matches(rel_path, False, p, cs) for p in options.only)


class RealFileSystem:
    def mkdir_all(self, path: Path, mode: int) -> None:
        if path.is_dir():
            return
        if path.parent != path:
            self.mkdir_all(path.parent, mode)
        if ensure_idempotent(path.mkdir, path.is_dir):
            # Explicit chmod so the process umask does not apply.
            os.chmod(path, mode)

    def copy_file(self, src: Path, dest: Path) -> None:
        shutil.copy2(src, dest)

    def copy_tree(self, src: Path, dest: Path, options: CopyOptions) -> None:
        self._copy_dir(src, src, dest, options)

    def _copy_dir(
        self, root: Path, src_dir: Path, dest_dir: Path, options: CopyOptions
    ) -> None:
        if options.copy_empty_directories:
            self.mkdir_all(dest_dir, options.dir_mode)

        for entry in sorted(src_dir.iterdir()):
            target = dest_dir / entry.name
            if options.before_copy is not None and not options.before_copy(entry, target):
                continue

            is_dir = entry.is_dir()
            rel_path = entry.relative_to(root).as_posix()
            if not passes_filters(rel_path, is_dir, options):
                continue

            if is_dir:
                self._copy_dir(root, entry, target, options)
            else:
                self.mkdir_all(dest_dir, options.dir_mode)
                self.copy_file(entry, target)
                if options.file_mode is not None:
                    self.chmod(target, options.file_mode)

            if options.after_copy is not None:
                options.after_copy(entry, target)

    def symlink(self, src: Path, dest: Path) -> None:
        os.symlink(src, dest, target_is_directory=src.is_dir())

    def chmod(self, path: Path, mode: int) -> None:
        os.chmod(path, mode)

    def mtime(self, path: Path) -> float:
        return path.stat().st_mtime

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def is_writable(self, path: Path) -> bool:
        return os.access(path, os.W_OK)
