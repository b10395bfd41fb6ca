import logging
import shlex
import subprocess
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from trellis.common import RealFileSystem
from trellis.spec import AssetConversionError, FileSystemAdapter

log = logging.getLogger(__name__)

# (base_path, source, target, source_ext, target_ext) -> needs conversion
OutdatedCheck = Callable[[Path, str, str, str, str], bool]

DEFAULT_COMMANDS: Dict[str, Tuple[str, str]] = {
    "less": ("css", "lessc {from} {to} --no-color --source-map"),
    "scss": ("css", "sass {from} {to} --sourcemap"),
    "sass": ("css", "sass {from} {to} --sourcemap"),
    "styl": ("css", "stylus < {from} > {to}"),
    "coffee": ("js", "coffee -p {from} > {to}"),
    "ts": ("js", "tsc --out {to} {from}"),
}


class AssetConverter:
    """
    Converts source assets (LESS, SCSS, TypeScript, ...) into CSS or JS by
    running an external command, but only when the target is missing or older
    than its source.
    """

    def __init__(
        self,
        commands: Optional[Dict[str, Tuple[str, str]]] = None,
        force_convert: bool = False,
        is_outdated: Optional[OutdatedCheck] = None,
        fs: Optional[FileSystemAdapter] = None,
    ):
        self.commands = dict(DEFAULT_COMMANDS if commands is None else commands)
        self.force_convert = force_convert
        self.is_outdated = is_outdated
        self.fs = fs or RealFileSystem()

    def convert(self, asset: str, base_path: Path) -> str:
        stem, dot, ext = asset.rpartition(".")
        if not dot or ext not in self.commands:
            return asset

        target_ext, command = self.commands[ext]
        result = f"{stem}.{target_ext}"
        if self._needs_conversion(base_path, asset, result, ext, target_ext):
            self._run_command(command, base_path, asset, result)
        return result

    def _needs_conversion(
        self, base_path: Path, src: str, dst: str, src_ext: str, dst_ext: str
    ) -> bool:
        if self.force_convert:
            return True
        if self.is_outdated is not None:
            return self.is_outdated(base_path, src, dst, src_ext, dst_ext)
        try:
            dst_mtime = self.fs.mtime(base_path / dst)
        except FileNotFoundError:
            return True
        return dst_mtime < self.fs.mtime(base_path / src)

    def _run_command(self, command: str, base_path: Path, asset: str, result: str) -> None:
        command = command.replace("{from}", shlex.quote(str(base_path / asset))).replace(
            "{to}", shlex.quote(str(base_path / result))
        )
        proc = subprocess.run(
            command,
            shell=True,
            cwd=base_path,
            capture_output=True,
            text=True,
            check=False,
        )
        if proc.returncode != 0:
            raise AssetConversionError(command, proc.returncode, proc.stdout, proc.stderr)
        log.info(f"Converted {asset} into {result}: {command}")
