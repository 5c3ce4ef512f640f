import os
from unittest.mock import Mock, patch

import pytest

from conftest import image_bytes, write_file
from sitekit.framework.errors import AssetNotFoundError, EmptyRemoteContentError
from sitekit.framework.resolver import PathResolver


def test_assets_dir_wins_over_themes_and_static(site_root, make_session):
    session = make_session({"theme": ["base"]})
    write_file(site_root, "static/css/site.css", "static")
    write_file(site_root, "themes/base/assets/css/site.css", "theme")
    expected = write_file(site_root, "assets/css/site.css", "assets")

    resolved = session.resolver.resolve("css/site.css")

    assert resolved.file_path == str(expected)
    assert resolved.path == "/css/site.css"
    assert resolved.ext == "css"
    assert (resolved.type, resolved.subtype) == ("text", "text/css")
    assert resolved.size == len("assets")
    assert resolved.read() == b"assets"


def test_search_order_follows_theme_order(site_root, make_session):
    session = make_session({"theme": ["first", "second"]})
    write_file(site_root, "themes/second/static/js/app.js", "second")
    expected = write_file(site_root, "themes/first/static/js/app.js", "first")

    assert session.resolver.resolve("js/app.js").file_path == str(expected)


def test_theme_assets_win_over_project_static(site_root, make_session):
    session = make_session({"theme": ["base"]})
    write_file(site_root, "static/app.js", "static")
    expected = write_file(site_root, "themes/base/assets/app.js", "theme")

    assert session.resolver.resolve("app.js").file_path == str(expected)


def test_image_is_classified_with_subtype(site_root, make_session):
    session = make_session()
    write_file(site_root, "static/images/logo.png", image_bytes((10, 5)))

    resolved = session.resolver.resolve("images/logo.png")

    assert (resolved.type, resolved.subtype) == ("image", "image/png")


def test_missing_file_raises_not_found(make_session):
    session = make_session()

    with pytest.raises(AssetNotFoundError, match=r'Asset file "missing.png" doesn\'t exist'):
        session.resolver.resolve("missing.png")


def test_force_slash_off_keeps_relative_public_path(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/app.js", "x")

    assert session.resolver.resolve("app.js", force_slash=False).path == "app.js"


def test_remote_asset_is_fetched_once_and_cached(make_session):
    session = make_session()
    url = "https://cdn.example.com/lib/app.js?v=2"
    response = Mock(status_code=200, content=b"console.log(1);")

    with patch("sitekit.framework.resolver.requests.get", return_value=response) as mock_get:
        first = session.resolver.resolve(url)
        second = session.resolver.resolve(url)

    mock_get.assert_called_once_with(url)
    assert first.file_path == second.file_path
    assert first.file_path.startswith(session.config.remote_cache_dir)
    assert os.path.isfile(first.file_path)
    assert first.remote is True
    assert first.path == "/assets/cdn.example.com/lib/app.js/v-2"


def test_remote_stylesheet_endpoint_gets_css_extension(make_session):
    session = make_session()
    url = "https://fonts.example.com/css2?family=Roboto"
    response = Mock(status_code=200, content=b"@font-face{}")

    with patch("sitekit.framework.resolver.requests.get", return_value=response):
        resolved = session.resolver.resolve(url)

    assert resolved.path == "/assets/fonts.example.com/css2/family-roboto.css"
    assert resolved.ext == "css"
    assert resolved.subtype == "text/css"


def test_remote_http_error_is_not_found(make_session):
    session = make_session()

    with patch("sitekit.framework.resolver.requests.get", return_value=Mock(status_code=404, content=b"")):
        with pytest.raises(AssetNotFoundError):
            session.resolver.resolve("https://cdn.example.com/missing.js")


def test_empty_remote_content_raises(make_session):
    session = make_session()

    with patch("sitekit.framework.resolver.requests.get", return_value=Mock(status_code=200, content=b"\n")):
        with pytest.raises(EmptyRemoteContentError, match=r"is empty"):
            session.resolver.resolve("https://cdn.example.com/empty.js")


def test_remote_public_path_is_sanitized(make_session):
    session = make_session()
    resolver = PathResolver(session.config)

    assert resolver.remote_public_path("https://example.com/a:b|c.png") == "assets/example.com/a_b_c.png"
