#!/usr/bin/env python3
import sys
from pathlib import Path

from trellis.assets import AssetManager
from trellis.config import load_config_from_path
from trellis.spec import AssetError


def check_bundles(search_path: Path) -> int:
    """
    Loads the [tool.trellis] configuration above ``search_path`` and reports
    circular dependencies between the configured asset bundles.
    """
    print("--- Asset Bundle Cycle Detector ---")

    try:
        config = load_config_from_path(search_path)
        manager = AssetManager.from_config(config)
        cycles = manager.check_dependencies()
    except AssetError as e:
        print(f"[ERROR] {e}")
        return 2

    if not cycles:
        print("[SUCCESS] No circular bundle dependencies detected.")
        return 0

    print(f"[FAIL] {len(cycles)} circular bundle dependencies detected!")
    print("-" * 40)
    for cycle in cycles:
        print(" -> ".join(cycle + cycle[:1]))
    print("-" * 40)
    return 1


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path.cwd()
    sys.exit(check_bundles(target))
