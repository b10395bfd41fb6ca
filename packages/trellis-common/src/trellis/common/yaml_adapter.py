from pathlib import Path
from typing import Any, Dict

import yaml

from trellis.spec import ConfigurationError


class YamlAdapter:
    def load(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML in {path}: {e}") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigurationError(
                f"Expected a mapping at the top level of {path}, got {type(content).__name__}"
            )
        return {str(k): v for k, v in content.items()}

    def dump(self, data: Dict[str, Any]) -> str:
        return yaml.safe_dump(
            data,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )

    def save(self, path: Path, data: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        new_content = self.dump(data)

        if path.exists():
            try:
                if path.read_text(encoding="utf-8") == new_content:
                    return
            except (OSError, UnicodeDecodeError):
                # Unreadable or binary; overwrite.
                pass

        with path.open("w", encoding="utf-8") as f:
            f.write(new_content)
