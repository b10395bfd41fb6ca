from pathlib import Path

import pytest

from trellis.assets import AssetPathResolver, AssetPublisher
from trellis.spec import AssetBundle
from trellis.test_utils import touch


@pytest.fixture
def publisher(tmp_path: Path) -> AssetPublisher:
    return AssetPublisher(tmp_path / "web" / "assets", "/assets")


@pytest.fixture
def bundle(tmp_path: Path) -> AssetBundle:
    return AssetBundle(
        "app", base_path=str(tmp_path / "web" / "assets" / "abc"), base_url="/assets/abc"
    )


def make_resolver(publisher, tmp_path, **kwargs) -> AssetPathResolver:
    return AssetPathResolver(
        publisher, public_path=tmp_path / "web", public_url="/", **kwargs
    )


def test_resolve_prefers_exact_key(publisher, bundle, tmp_path):
    resolver = make_resolver(
        publisher, tmp_path, asset_map={"app.js": "first.js", "lib/app.js": "exact.js"}
    )

    assert resolver.resolve(bundle, "lib/app.js") == "exact.js"


def test_resolve_uses_first_suffix_match_not_longest(publisher, bundle, tmp_path):
    resolver = make_resolver(
        publisher, tmp_path, asset_map={"app.js": "first.js", "my/app.js": "longer.js"}
    )

    assert resolver.resolve(bundle, "lib/my/app.js") == "first.js"


def test_resolve_prefixes_source_path(publisher, tmp_path):
    resolver = make_resolver(
        publisher, tmp_path, asset_map={"vendor/jquery.js": "//cdn.example.com/jq.js"}
    )
    bundle = AssetBundle("jq", source_path="/project/vendor")

    assert resolver.resolve(bundle, "jquery.js") == "//cdn.example.com/jq.js"
    assert resolver.resolve(bundle, "other.js") is None


def test_resolve_ignores_keys_longer_than_asset(publisher, bundle, tmp_path):
    resolver = make_resolver(publisher, tmp_path, asset_map={"long/app.js": "x.js"})

    assert resolver.resolve(bundle, "app.js") is None


def test_asset_url_without_override_uses_bundle_base(publisher, bundle, tmp_path):
    resolver = make_resolver(publisher, tmp_path)

    assert resolver.asset_url(bundle, "js/app.js") == "/assets/abc/js/app.js"


@pytest.mark.parametrize(
    "asset", ["https://cdn.example.com/a.js", "//cdn.example.com/a.js", "/static/a.js"]
)
def test_asset_url_passes_non_local_references_through(publisher, bundle, tmp_path, asset):
    resolver = make_resolver(publisher, tmp_path)

    assert resolver.asset_url(bundle, asset) == asset


@pytest.mark.parametrize(
    "asset", ["https://cdn.example.com/a.js", "//cdn.example.com/a.js"]
)
def test_asset_path_is_none_for_absolute_urls(publisher, bundle, tmp_path, asset):
    resolver = make_resolver(publisher, tmp_path)

    assert resolver.asset_path(bundle, asset) is None


def test_asset_path_treats_domain_relative_reference_as_local(publisher, bundle, tmp_path):
    resolver = make_resolver(publisher, tmp_path)

    assert resolver.asset_path(bundle, "/static/a.js") == Path(bundle.base_path) / "static" / "a.js"


def test_override_to_url_is_returned_unchanged(publisher, bundle, tmp_path):
    resolver = make_resolver(
        publisher, tmp_path, asset_map={"jquery.js": "https://cdn.example.com/jq.min.js"}
    )

    assert resolver.asset_url(bundle, "jquery.js") == "https://cdn.example.com/jq.min.js"
    assert resolver.asset_path(bundle, "jquery.js") is None


def test_relative_override_resolves_against_publisher_base(publisher, bundle, tmp_path):
    resolver = make_resolver(publisher, tmp_path, asset_map={"app.js": "shared/app.min.js"})

    assert resolver.asset_url(bundle, "app.js") == "/assets/shared/app.min.js"
    assert resolver.asset_path(bundle, "app.js") == publisher.base_path / "shared/app.min.js"


def test_web_alias_override_resolves_against_public_root(publisher, bundle, tmp_path):
    resolver = make_resolver(publisher, tmp_path, asset_map={"app.js": "@web/js/app.js"})

    assert resolver.asset_url(bundle, "app.js") == "/js/app.js"
    assert resolver.asset_path(bundle, "app.js") == tmp_path / "web" / "js/app.js"


def test_asset_path_is_none_without_base_path(publisher, tmp_path):
    resolver = make_resolver(publisher, tmp_path)

    assert resolver.asset_path(AssetBundle("bare"), "app.js") is None


def test_timestamp_is_appended_for_existing_files(publisher, bundle, tmp_path):
    # Arrange
    target = Path(bundle.base_path) / "app.js"
    target.parent.mkdir(parents=True)
    target.write_text("")
    touch(target, 1_234_567_890)
    resolver = make_resolver(publisher, tmp_path, append_timestamp=True)

    # Act / Assert
    assert resolver.asset_url(bundle, "app.js") == "/assets/abc/app.js?v=1234567890"
    assert resolver.asset_url(bundle, "missing.js") == "/assets/abc/missing.js"
