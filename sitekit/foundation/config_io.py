from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV_VAR = "SITEKIT_CONFIG"
LOCAL_OVERLAY_NAME = "config.local.yaml"
SITE_MARKERS = ("config.yaml", ".git")


def find_site_root(start: str | os.PathLike[str] | None = None) -> str:
    """Closest directory, from `start` upwards, holding a `config.yaml` or `.git`."""
    start_path = Path(start or os.getcwd()).resolve()
    if start_path.is_file():
        start_path = start_path.parent

    for candidate in (start_path, *start_path.parents):
        if any((candidate / marker).exists() for marker in SITE_MARKERS):
            return str(candidate)

    raise FileNotFoundError(f"Cannot locate site root from {start_path} (looked for {', '.join(SITE_MARKERS)})")


def _load_yaml_mapping(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        try:
            payload = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def _kind(value: Any) -> str:
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "list"
    return type(value).__name__


def _deep_merge(base: Any, overlay: Any, *, path: str) -> Any:
    """Overlay wins; mappings merge key by key, lists are replaced whole, null clears."""
    if overlay is None or base is None:
        return overlay

    base_kind, overlay_kind = _kind(base), _kind(overlay)
    structured = ("mapping", "list")
    if (base_kind in structured or overlay_kind in structured) and base_kind != overlay_kind:
        raise ValueError(
            f"Invalid config overlay merge at {path}: base is {base_kind} but overlay is {overlay_kind}"
        )

    if base_kind == "mapping":
        merged: dict[str, Any] = dict(base)
        for key, value in overlay.items():
            child_path = f"{path}.{key}" if path else str(key)
            merged[key] = _deep_merge(base[key], value, path=child_path) if key in base else value
        return merged
    if base_kind == "list":
        return list(overlay)
    return overlay


def load_config(
    *,
    config_path: str | None = None,
    site_dir: str | None = None,
    config_name: str = "config",
    env_var: str | None = CONFIG_ENV_VAR,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Load the site configuration mapping.

    An explicit `config_path` (or the `env_var` environment variable) loads a
    single file. Otherwise `<site_dir>/<config_name>.yaml` is loaded and
    `config.local.yaml` next to it is deep-merged on top when present.

    Returns (cfg, meta) where meta records the mode and loaded paths.
    """

    explicit_path = None
    if config_path is not None:
        explicit_path = str(config_path).strip() or None
    elif env_var:
        raw_env = os.environ.get(str(env_var), "")
        explicit_path = raw_env.strip() or None

    if explicit_path:
        expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
        cfg = _load_yaml_mapping(expanded)
        meta = {
            "mode": "env" if config_path is None else "explicit",
            "paths": [expanded],
            "env_var": env_var,
            "site_root": os.path.dirname(expanded),
        }
        return cfg, meta

    if site_dir is not None and os.path.isabs(str(site_dir)):
        site_root = str(site_dir)
    else:
        site_root = find_site_root(site_dir)
    base_config_path = os.path.join(site_root, config_name + ".yaml")
    local_overlay_path = os.path.join(site_root, LOCAL_OVERLAY_NAME)

    if not os.path.exists(base_config_path):
        raise FileNotFoundError(f"Missing base config file: {base_config_path}")

    cfg = _load_yaml_mapping(base_config_path)
    loaded_paths = [os.path.abspath(base_config_path)]
    mode = "base"

    if os.path.exists(local_overlay_path):
        overlay = _load_yaml_mapping(local_overlay_path)
        cfg = _deep_merge(cfg, overlay, path="")
        loaded_paths.append(os.path.abspath(local_overlay_path))
        mode = "base+local"

    meta = {"mode": mode, "paths": loaded_paths, "env_var": env_var, "site_root": site_root}
    return cfg, meta
