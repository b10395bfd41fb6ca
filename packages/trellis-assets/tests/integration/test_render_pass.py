from pathlib import Path

from trellis.assets import AssetManager
from trellis.config import load_config_from_path
from trellis.spec import Position


def build_project(workspace_factory, **config) -> Path:
    return (
        workspace_factory.with_config(
            {"base_path": "web/assets", "bundles_file": "assets.yaml", **config}
        )
        .with_bundles(
            {
                "jquery": {"source_path": "vendor/jquery", "js": ["jquery.js"]},
                "app": {
                    "source_path": "resources/app",
                    "css": ["site.css"],
                    "js": ["app.js", ["widget.src", {"defer": True}]],
                    "depends": ["jquery", "legacy"],
                },
                "legacy": {"base_url": "/old", "js": ["old.js"]},
            }
        )
        .with_source("vendor/jquery/jquery.js", "/* jq */")
        .with_source("resources/app/site.css", "body {}", mtime=1_600_000_000)
        .with_source("resources/app/app.js", "app()")
        .with_source("resources/app/widget.src", "widget()")
        .with_source("resources/app/.secret", "do not publish")
        .with_dir("web/assets")
        .build()
    )


def render(root: Path, bundle: str = "app"):
    manager = AssetManager.from_config(load_config_from_path(root))
    manager.begin_render()
    manager.register_bundle(bundle)
    return manager, manager.end_render()


def test_render_pass_publishes_and_emits_in_dependency_order(workspace_factory):
    # Arrange
    root = build_project(
        workspace_factory,
        asset_map={"jquery.js": "https://cdn.example.com/jquery.min.js"},
        converter={"commands": {"src": ["js", "cp {from} {to}"]}},
    )

    # Act
    manager, page = render(root)

    # Assert
    app_url = manager.get_published_url(root / "resources" / "app")
    app_path = manager.get_published_path(root / "resources" / "app")
    assert page.js_at(Position.END) == [
        "https://cdn.example.com/jquery.min.js",
        "/old/old.js",
        f"{app_url}/app.js",
        f"{app_url}/widget.js",
    ]
    assert page.js_files[Position.END][f"{app_url}/widget.js"] == {"defer": True}
    assert list(page.css_files) == [f"{app_url}/site.css"]

    assert app_url.startswith("/assets/")
    assert (app_path / "app.js").read_text() == "app()"
    assert (app_path / "widget.js").read_text() == "widget()"
    assert not (app_path / ".secret").exists()


def test_disabled_bundle_drops_out_of_the_page(workspace_factory):
    root = build_project(workspace_factory, bundles={"legacy": False})

    _, page = render(root)

    assert "/old/old.js" not in page.js_at(Position.END)
    assert len(page.js_at(Position.END)) == 3


def test_timestamps_and_web_alias(workspace_factory):
    root = build_project(
        workspace_factory,
        append_timestamp=True,
        asset_map={"old.js": "@web/js/old.js"},
    )

    manager, page = render(root)

    app_url = manager.get_published_url(root / "resources" / "app")
    assert list(page.css_files) == [f"{app_url}/site.css?v=1600000000"]
    # The aliased file does not exist, so no timestamp is added.
    assert "/js/old.js" in page.js_at(Position.END)


def test_all_bundles_disabled(workspace_factory):
    root = build_project(workspace_factory, bundles=False)

    _, page = render(root)

    assert page.js_files == {}
    assert page.css_files == {}
    assert list((root / "web" / "assets").iterdir()) == []


def test_second_process_reuses_published_files(workspace_factory):
    root = build_project(workspace_factory)
    first, _ = render(root)
    published = first.get_published_path(root / "resources" / "app") / "app.js"
    mtime = published.stat().st_mtime_ns

    second, _ = render(root)

    assert second.get_published_path(root / "resources" / "app") / "app.js" == published
    assert published.stat().st_mtime_ns == mtime
