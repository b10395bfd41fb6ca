import os
from pathlib import Path
from textwrap import dedent
from typing import Dict, Any, List, Optional

import tomli_w

from trellis.common import YamlAdapter


class WorkspaceFactory:
    def __init__(self, root_path: Path):
        self.root_path = root_path
        self._files_to_create: List[Dict[str, Any]] = []
        self._pyproject_data: Dict[str, Any] = {}
        self._mtimes: Dict[str, float] = {}

    def with_config(self, trellis_config: Dict[str, Any]) -> "WorkspaceFactory":
        tool = self._pyproject_data.setdefault("tool", {})
        tool["trellis"] = trellis_config
        return self

    def with_project_name(self, name: str) -> "WorkspaceFactory":
        project = self._pyproject_data.setdefault("project", {})
        project["name"] = name
        return self

    def with_source(
        self, path: str, content: str, mtime: Optional[float] = None
    ) -> "WorkspaceFactory":
        self._files_to_create.append(
            {"path": path, "content": dedent(content), "format": "raw"}
        )
        if mtime is not None:
            self._mtimes[path] = mtime
        return self

    def with_bundles(
        self, data: Dict[str, Any], path: str = "assets.yaml"
    ) -> "WorkspaceFactory":
        self._files_to_create.append({"path": path, "content": data, "format": "yaml"})
        return self

    def with_dir(self, path: str) -> "WorkspaceFactory":
        self._files_to_create.append({"path": path, "content": None, "format": "dir"})
        return self

    def build(self) -> Path:
        # 1. Finalize pyproject.toml if data was added
        if self._pyproject_data:
            self._files_to_create.append(
                {
                    "path": "pyproject.toml",
                    "content": self._pyproject_data,
                    "format": "toml",
                }
            )

        # 2. Write all files
        for file_spec in self._files_to_create:
            output_path = self.root_path / file_spec["path"]
            content = file_spec["content"]
            fmt = file_spec["format"]

            if fmt == "dir":
                output_path.mkdir(parents=True, exist_ok=True)
                continue

            output_path.parent.mkdir(parents=True, exist_ok=True)
            if fmt == "toml":
                with output_path.open("wb") as f:
                    tomli_w.dump(content, f)
            elif fmt == "yaml":
                YamlAdapter().save(output_path, content)
            else:  # raw
                output_path.write_text(content, encoding="utf-8")

        # 3. Pin modification times last, so later writes cannot disturb them
        for path, mtime in self._mtimes.items():
            touch(self.root_path / path, mtime)

        return self.root_path


def touch(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))
