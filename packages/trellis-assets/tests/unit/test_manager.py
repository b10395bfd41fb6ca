from pathlib import Path

import pytest

from trellis.assets import AssetManager
from trellis.config import parse_config
from trellis.spec import AssetBundle, ConfigurationError, Position
from trellis.test_utils import create_test_manager, fixed_hash


@pytest.fixture
def sources(tmp_path: Path) -> Path:
    src = tmp_path / "resources"
    src.mkdir()
    (src / "app.js").write_text("app()")
    return src


def test_from_config_validates_base_path(tmp_path: Path):
    config = parse_config({"base_path": "missing"}, tmp_path)

    with pytest.raises(ConfigurationError, match="does not exist"):
        AssetManager.from_config(config)


def test_url_for_publishes_the_bundle_first(tmp_path: Path, sources: Path):
    manager = create_test_manager(tmp_path, hash_strategy=fixed_hash)
    bundle = AssetBundle("adhoc", source_path=str(sources))

    url = manager.url_for(bundle, "app.js")

    assert url == "/assets/resources/app.js"
    assert manager.path_for(bundle, "app.js").read_text() == "app()"


def test_publish_delegates_to_publisher(tmp_path: Path, sources: Path):
    manager = create_test_manager(tmp_path, hash_strategy=fixed_hash)

    published = manager.publish(sources / "app.js")

    assert manager.get_published_path(sources / "app.js") == published.path
    assert manager.get_published_url(sources / "app.js") == "/assets/app-js/app.js"


def test_render_passes_are_isolated(tmp_path: Path):
    manager = create_test_manager(
        tmp_path,
        {"bundles": {"jq": {"base_path": "/web", "base_url": "/jq", "js": ["jquery.js"]}}},
    )

    manager.begin_render()
    manager.register_bundle("jq", Position.HEAD)
    first = manager.end_render()

    manager.begin_render()
    manager.register_bundle("jq")
    second = manager.end_render()

    assert first.js_at(Position.HEAD) == ["/jq/jquery.js"]
    assert second.js_at(Position.END) == ["/jq/jquery.js"]
    assert second.js_at(Position.HEAD) == []


def test_begin_render_drops_unemitted_bundles(tmp_path: Path):
    manager = create_test_manager(
        tmp_path, {"bundles": {"jq": {"base_url": "/jq", "js": ["jquery.js"]}}}
    )
    manager.register_bundle("jq")

    registry = manager.begin_render()

    assert registry is manager.registry
    assert not registry.is_known("jq")


def test_check_dependencies_reports_cycles(tmp_path: Path):
    manager = create_test_manager(
        tmp_path,
        {
            "bundles": {
                "a": {"depends": ["b"]},
                "b": {"depends": ["a"]},
                "c": {},
            }
        },
    )

    cycles = manager.check_dependencies()

    assert [sorted(c) for c in cycles] == [["a", "b"]]
    assert manager.check_dependencies(["c"]) == []
