from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from sitekit.foundation.config_namespace import ConfigNamespace

ALLOWED_COMPILE_STYLES: tuple[str, ...] = ("expanded", "compressed")

DEFAULT_OUTPUT_FORMATS: dict[str, dict[str, str]] = {
    "html": {"subpath": "", "filename": "index", "extension": "html"},
    "xml": {"subpath": "", "filename": "index", "extension": "xml"},
    "json": {"subpath": "", "filename": "index", "extension": "json"},
    "txt": {"subpath": "", "filename": "index", "extension": "txt"},
}


@dataclass(frozen=True)
class OutputFormat:
    subpath: str = ""
    filename: str = "index"
    extension: str = "html"


@dataclass(frozen=True)
class CompileConfig:
    enabled: bool = True
    style: str = "expanded"
    imports: tuple[str, ...] = ("sass", "scss", "node_modules")
    sourcemap: bool = False
    variables: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ImagesConfig:
    optimize: bool = False
    quality: int = 75


@dataclass(frozen=True)
class PostProcessConfig:
    css: bool = False
    js: bool = False


@dataclass(frozen=True)
class SiteConfig:
    """Validated site configuration consumed by the asset pipeline.

    Directory attributes are absolute. `assets_target` is the public URL
    prefix (relative to the output root) under which derived assets live.
    """

    root: str
    output_dir: str
    cache_dir: str
    assets_dir: str
    static_dir: str
    themes_dir: str
    themes: tuple[str, ...]
    language_default: str
    assets_target: str
    fingerprint: bool
    minify: bool
    compile: CompileConfig
    images: ImagesConfig
    postprocess: PostProcessConfig
    output_formats: Mapping[str, OutputFormat]

    @staticmethod
    def from_dict(cfg: Mapping[str, Any], *, root: str) -> "SiteConfig":
        """
        Parse and validate the site configuration.

        Raises:
            ValueError: on unknown keys or invalid values.
            TypeError: on values of the wrong type.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        site_root = os.path.abspath(os.path.expanduser(root))

        def normalize_path(value: str) -> str:
            expanded = os.path.expandvars(os.path.expanduser(value.strip()))
            if not os.path.isabs(expanded):
                expanded = os.path.join(site_root, expanded)
            return os.path.abspath(expanded)

        ns = ConfigNamespace(cfg, path="")

        output_ns = ns.namespace("output")
        output_dir = normalize_path(output_ns.get_str("dir", default="_site"))
        formats_ns = output_ns.namespace("formats", default=DEFAULT_OUTPUT_FORMATS)
        output_formats: dict[str, OutputFormat] = {}
        for name in formats_ns.keys():
            fmt_ns = formats_ns.namespace(name)
            output_formats[name] = OutputFormat(
                subpath=fmt_ns.get_str("subpath", default="", allow_empty=True),
                filename=fmt_ns.get_str("filename", default="", allow_empty=True),
                extension=fmt_ns.get_str("extension", default="", allow_empty=True),
            )

        language_default = ns.get_str("language", default="en")

        assets_ns = ns.namespace("assets")
        assets_dir = normalize_path(assets_ns.get_str("dir", default="assets"))
        assets_target = assets_ns.get_str("target", default="assets", allow_empty=True).strip("/")
        fingerprint = assets_ns.namespace("fingerprint").get_bool("enabled", default=True)
        minify = assets_ns.namespace("minify").get_bool("enabled", default=True)

        compile_ns = assets_ns.namespace("compile")
        compile_cfg = CompileConfig(
            enabled=compile_ns.get_bool("enabled", default=True),
            style=compile_ns.get_str("style", default="expanded").lower(),
            imports=tuple(
                compile_ns.get_list_str("import", default=["sass", "scss", "node_modules"])
            ),
            sourcemap=compile_ns.get_bool("sourcemap", default=False),
            variables=compile_ns.get_scalar_mapping("variables", default={}),
        )

        images_ns = assets_ns.namespace("images")
        images_cfg = ImagesConfig(
            optimize=images_ns.namespace("optimize").get_bool("enabled", default=False),
            quality=images_ns.get_int("quality", default=75, min_value=0, max_value=100),
        )

        static_dir = normalize_path(ns.namespace("static").get_str("dir", default="static"))
        themes = tuple(ns.get_list_str("theme", default=[]))
        themes_dir = normalize_path(ns.namespace("themes").get_str("dir", default="themes"))
        cache_dir = normalize_path(ns.namespace("cache").get_str("dir", default=".cache"))

        postprocess_ns = ns.namespace("postprocess")
        postprocess_cfg = PostProcessConfig(
            css=postprocess_ns.namespace("css").get_bool("enabled", default=False),
            js=postprocess_ns.namespace("js").get_bool("enabled", default=False),
        )

        ns.assert_consumed()

        return SiteConfig(
            root=site_root,
            output_dir=output_dir,
            cache_dir=cache_dir,
            assets_dir=assets_dir,
            static_dir=static_dir,
            themes_dir=themes_dir,
            themes=themes,
            language_default=language_default,
            assets_target=assets_target,
            fingerprint=fingerprint,
            minify=minify,
            compile=compile_cfg,
            images=images_cfg,
            postprocess=postprocess_cfg,
            output_formats=output_formats,
        )

    @property
    def store_dir(self) -> str:
        return os.path.join(self.cache_dir, "store")

    @property
    def remote_cache_dir(self) -> str:
        return os.path.join(self.cache_dir, "assets", "remote")

    def theme_dir(self, theme: str, sub: str = "") -> str:
        if sub:
            return os.path.join(self.themes_dir, theme, *sub.split("/"))
        return os.path.join(self.themes_dir, theme)

    def output_format(self, name: str) -> OutputFormat:
        fmt = self.output_formats.get(name)
        if fmt is None:
            available = ", ".join(sorted(self.output_formats)) or "<none>"
            raise ValueError(f"Unknown output format: {name} (available: {available})")
        return fmt


@dataclass(frozen=True)
class AssetOptions:
    """Explicit per-asset options; defaults come from the site configuration."""

    fingerprint: bool
    minify: bool
    optimize: bool
    filename: str = ""
    ignore_missing: bool = False
    force_slash: bool = True

    @staticmethod
    def from_mapping(options: Mapping[str, Any] | None, config: SiteConfig) -> "AssetOptions":
        ns = ConfigNamespace(dict(options or {}), path="asset options")
        parsed = AssetOptions(
            fingerprint=ns.get_bool("fingerprint", default=config.fingerprint),
            minify=ns.get_bool("minify", default=config.minify),
            optimize=ns.get_bool("optimize", default=config.images.optimize),
            filename=ns.get_str("filename", default="", allow_empty=True),
            ignore_missing=ns.get_bool("ignore_missing", default=False),
            force_slash=ns.get_bool("force_slash", default=True),
        )
        ns.assert_consumed()
        return parsed
