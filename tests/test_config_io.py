import os

import pytest

from sitekit.foundation.config_io import load_config


def test_load_config_base_only(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_SITEKIT_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a: 1\nb:\n  c: 2\n", encoding="utf-8")

    cfg, meta = load_config(site_dir=str(tmp_path), env_var="TEST_SITEKIT_CONFIG")

    assert cfg == {"a": 1, "b": {"c": 2}}
    assert meta["mode"] == "base"
    assert meta["site_root"] == str(tmp_path)
    assert os.path.basename(meta["paths"][0]) == "config.yaml"


def test_load_config_base_plus_local_overlay(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_SITEKIT_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a: 1\nb:\n  c: 2\n", encoding="utf-8")
    (tmp_path / "config.local.yaml").write_text("b:\n  c: 3\n  d: 4\n", encoding="utf-8")

    cfg, meta = load_config(site_dir=str(tmp_path), env_var="TEST_SITEKIT_CONFIG")

    assert cfg == {"a": 1, "b": {"c": 3, "d": 4}}
    assert meta["mode"] == "base+local"
    assert len(meta["paths"]) == 2


def test_load_config_overlay_type_mismatch_raises(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_SITEKIT_CONFIG", raising=False)
    (tmp_path / "config.yaml").write_text("a:\n  b: 1\n", encoding="utf-8")
    (tmp_path / "config.local.yaml").write_text("a: [1, 2]\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"Invalid config overlay merge at a"):
        load_config(site_dir=str(tmp_path), env_var="TEST_SITEKIT_CONFIG")


def test_load_config_from_env_var_skips_overlay(tmp_path, monkeypatch):
    explicit = tmp_path / "other.yaml"
    explicit.write_text("theme: [hyde]\n", encoding="utf-8")
    (tmp_path / "config.local.yaml").write_text("theme: [ignored]\n", encoding="utf-8")
    monkeypatch.setenv("TEST_SITEKIT_CONFIG", str(explicit))

    cfg, meta = load_config(site_dir=str(tmp_path), env_var="TEST_SITEKIT_CONFIG")

    assert cfg == {"theme": ["hyde"]}
    assert meta["mode"] == "env"


def test_load_config_rejects_non_mapping(tmp_path):
    explicit = tmp_path / "list.yaml"
    explicit.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"must contain a YAML mapping"):
        load_config(config_path=str(explicit))
