import logging
import os

import pytest

from conftest import image_bytes, write_file
from sitekit.framework.errors import PersistError

PLAIN = {"fingerprint": False, "minify": False}


def test_save_writes_content_under_output_dir(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/js/app.js", "var a = 1;")
    asset = session.asset("js/app.js", **PLAIN)

    file_path = asset.save()

    assert file_path == str(site_root / "_site" / "js" / "app.js")
    with open(file_path, "rb") as handle:
        assert handle.read() == b"var a = 1;"


def test_existing_output_file_is_not_overwritten(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/app.js", "var a = 1;")
    existing = write_file(site_root, "_site/app.js", "copied from static")
    asset = session.asset("app.js", **PLAIN)

    assert asset.save() is None
    assert existing.read_text(encoding="utf-8") == "copied from static"


def test_dry_run_writes_nothing(site_root, make_session):
    session = make_session(dry_run=True)
    write_file(site_root, "assets/app.js", "var a = 1;")

    assert session.asset("app.js", **PLAIN).save() is None
    assert not (site_root / "_site").exists()


def test_write_failure_raises(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/app.js", "var a = 1;")
    write_file(site_root, "_site", "not a directory")

    with pytest.raises(PersistError, match=r"Can't save asset"):
        session.asset("app.js", **PLAIN).save()


def test_write_failure_is_ignored_with_ignore_missing(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/app.js", "var a = 1;")
    write_file(site_root, "_site", "not a directory")

    asset = session.asset("app.js", ignore_missing=True, **PLAIN)

    assert asset.save() is None


def test_publish_logs_failures_and_returns_path(site_root, make_session, caplog):
    session = make_session()
    write_file(site_root, "assets/app.js", "var a = 1;")
    write_file(site_root, "_site", "not a directory")
    asset = session.asset("app.js", **PLAIN)

    with caplog.at_level(logging.ERROR, logger="sitekit.tests"):
        assert asset.publish() == "/app.js"

    assert "Can't save asset" in caplog.text


def test_str_has_no_side_effect(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/app.js", "var a = 1;")
    asset = session.asset("app.js", **PLAIN)

    assert str(asset) == "/app.js"
    assert not (site_root / "_site").exists()


def test_optimize_runs_after_save(site_root, make_session):
    session = make_session({"assets": {"images": {"quality": 60}}})
    write_file(site_root, "assets/photo.jpg", image_bytes((64, 64), fmt="JPEG"))
    asset = session.asset("photo.jpg", optimize=True, **PLAIN)
    assert asset.optimized is False

    file_path = asset.save()

    assert asset.optimized is True
    with open(file_path, "rb") as handle:
        assert handle.read() == asset.content


def test_optimized_result_is_reused_from_store(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/photo.jpg", image_bytes((64, 64), fmt="JPEG"))
    first = session.asset("photo.jpg", optimize=True, **PLAIN)
    file_path = first.save()
    os.remove(file_path)

    second = session.asset("photo.jpg", optimize=True, **PLAIN)
    second.save()

    assert second.optimized is True
    with open(file_path, "rb") as handle:
        assert handle.read() == first.content


def test_optimize_is_not_applied_to_vector_images(site_root, make_session):
    session = make_session()
    write_file(site_root, "assets/logo.svg", b'<svg xmlns="http://www.w3.org/2000/svg" width="8" height="8"/>')
    asset = session.asset("logo.svg", optimize=True, **PLAIN)

    asset.save()

    assert asset.optimized is False


def test_missing_asset_is_not_saved(make_session):
    session = make_session()

    assert session.asset("nope.css", ignore_missing=True).save() is None


def test_optimize_cache_hit_write_failure_is_logged(site_root, make_session, caplog):
    session = make_session()
    write_file(site_root, "assets/photo.jpg", image_bytes((64, 64), fmt="JPEG"))
    session.asset("photo.jpg", optimize=True, **PLAIN).save()
    pending = session.asset("photo.jpg", optimize=True, **PLAIN)
    unwritable = str(site_root / "no-such-dir" / "photo.jpg")

    with caplog.at_level(logging.WARNING, logger="sitekit.tests"):
        result = session.pipeline.optimize(pending.data, unwritable)

    assert result is pending.data
    assert 'Asset "/photo.jpg" not optimized' in caplog.text
