from collections import Counter
from pathlib import Path
from typing import List, Tuple

from trellis.common import RealFileSystem
from trellis.spec import CopyOptions


class SpyFileSystem(RealFileSystem):
    """
    A real filesystem that records every mutating call, so tests can assert
    how many writes a publish actually performed.
    """

    def __init__(self):
        self.calls: List[Tuple[str, Path]] = []

    @property
    def counts(self) -> Counter:
        return Counter(op for op, _ in self.calls)

    def mkdir_all(self, path: Path, mode: int) -> None:
        self.calls.append(("mkdir_all", path))
        super().mkdir_all(path, mode)

    def copy_file(self, src: Path, dest: Path) -> None:
        self.calls.append(("copy_file", dest))
        super().copy_file(src, dest)

    def copy_tree(self, src: Path, dest: Path, options: CopyOptions) -> None:
        self.calls.append(("copy_tree", dest))
        super().copy_tree(src, dest, options)

    def symlink(self, src: Path, dest: Path) -> None:
        self.calls.append(("symlink", dest))
        super().symlink(src, dest)
