"""Transformation stages applied to asset records.

Each stage takes an `AssetData` and returns a new one. A stage is a no-op when
its flag is already set or when the record is not of a kind it applies to.
Results are memoized in the content store under
`<bundle key>__<tags>__<md5 of path, input bytes and stage settings>`. Compile
keys also cover every Sass source under the include paths and optimize/resize
keys cover the image quality, so neither an edited partial nor a changed
setting maps onto a stale entry.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import tempfile
from dataclasses import replace
from typing import Sequence

import rcssmin
import rjsmin
import sass

from sitekit.foundation.logging_utils import format_size_change
from sitekit.foundation.paths import join_path
from sitekit.framework.cache import ContentStore, content_digest, create_key
from sitekit.framework.config import ALLOWED_COMPILE_STYLES, SiteConfig
from sitekit.framework.errors import AssetError, CompileError, ImageError, MinifyError
from sitekit.framework.media import (
    image_size,
    is_raster,
    optimize_image_file,
    resize_image,
    svg_size,
)
from sitekit.framework.record import AssetData

SCSS_EXTENSIONS: tuple[str, ...] = ("scss",)
MINIFY_EXTENSIONS: tuple[str, ...] = ("css", "js")
SVG_SUBTYPES: tuple[str, ...] = ("image/svg", "image/svg+xml")
SASS_SOURCE_SUFFIXES: tuple[str, ...] = (".scss", ".sass")


def stage_digest(path: str, content: bytes, *settings: str) -> str:
    """Digest of a stage input: public path, bytes and any setting the output depends on."""
    hasher = hashlib.md5()
    hasher.update(path.encode("utf-8"))
    hasher.update(b"\0")
    hasher.update(content)
    for setting in settings:
        hasher.update(b"\0")
        hasher.update(setting.encode("utf-8"))
    return hasher.hexdigest()


def decode_text(data: AssetData, error: type[AssetError]) -> str:
    try:
        return data.content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise error(f'Asset "{data.path}" is not valid UTF-8 text: {exc}') from exc


def is_svg(data: AssetData) -> bool:
    return data.subtype in SVG_SUBTYPES or data.ext.lower() == "svg"


def probe_size(data: AssetData) -> tuple[int, int]:
    """
    Return (width, height) of an image record, (0, 0) for anything else.

    SVG dimensions come from the root element of `content_source`; raster
    dimensions are read from the current `content`.
    """

    if data.type != "image":
        return 0, 0
    if is_svg(data):
        declared = svg_size(data.content_source)
        if declared is not None:
            return declared
    try:
        return image_size(data.content)
    except ImageError as exc:
        raise ImageError(f'Handling asset "{data.path_source}" failed: {exc}') from exc


def css_path(path: str) -> str:
    """Rewrite an SCSS public path to CSS, including `scss`/`sass` directory segments."""
    head, sep, name = path.rpartition("/")
    name = re.sub(r"\.(scss|sass)$", ".css", name)
    if not sep:
        return name
    segments = ["css" if segment in ("scss", "sass") else segment for segment in head.split("/")]
    return "/".join(segments) + "/" + name


def minify_content(ext: str, text: str) -> str:
    if ext == "css":
        return rcssmin.cssmin(text)
    if ext == "js":
        return rjsmin.jsmin(text)
    raise MinifyError(f'Not able to minify "{ext}" content')


class TransformPipeline:
    def __init__(
        self,
        config: SiteConfig,
        store: ContentStore,
        *,
        debug: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.debug = debug
        self.logger = logger or logging.getLogger(__name__)
        # sources do not change during a build
        self._import_digests: dict[tuple[str, ...], str] = {}

    @property
    def sourcemap_active(self) -> bool:
        return self.debug and self.config.compile.sourcemap

    def _memoize(self, key: str, build) -> AssetData:
        if self.store.has(key):
            return AssetData.from_record(self.store.get(key))
        data = build()
        self.store.set(key, data.to_record())
        return data

    def fingerprint(self, data: AssetData) -> AssetData:
        if data.fingerprinted:
            return data
        digest = content_digest(data.content_source)
        path = data.path
        if data.ext:
            path = re.sub(rf"\.{re.escape(data.ext)}$", f".{digest}.{data.ext}", path)
        return replace(data, path=path, fingerprinted=True)

    def import_paths(self, data: AssetData) -> list[str]:
        cfg = self.config
        paths = [cfg.static_dir, cfg.assets_dir]
        for directory in cfg.compile.imports:
            paths.append(os.path.join(cfg.static_dir, directory))
            paths.append(os.path.join(cfg.assets_dir, directory))
            if data.file:
                paths.append(os.path.join(os.path.dirname(data.file), directory))
            for theme in cfg.themes:
                paths.append(cfg.theme_dir(theme, f"static/{directory}"))
                paths.append(cfg.theme_dir(theme, f"assets/{directory}"))
        if data.file:
            paths.append(os.path.dirname(data.file))
        return list(dict.fromkeys(paths))

    def import_digest(self, include_paths: Sequence[str]) -> str:
        """Digest of every Sass source reachable through `include_paths`."""
        cache_key = tuple(include_paths)
        cached = self._import_digests.get(cache_key)
        if cached is not None:
            return cached

        sources: set[str] = set()
        for directory in include_paths:
            for root, _dirs, files in os.walk(directory):
                sources.update(
                    os.path.join(root, name) for name in files if name.lower().endswith(SASS_SOURCE_SUFFIXES)
                )

        hasher = hashlib.md5()
        for source in sorted(sources):
            hasher.update(source.encode("utf-8"))
            hasher.update(b"\0")
            with open(source, "rb") as handle:
                hasher.update(handle.read())
            hasher.update(b"\0")
        digest = hasher.hexdigest()
        self._import_digests[cache_key] = digest
        return digest

    def compile_settings(self) -> str:
        cfg = self.config.compile
        variables = ",".join(f"{name}={value}" for name, value in sorted(cfg.variables.items()))
        return f"style={cfg.style}|imports={','.join(cfg.imports)}|variables={variables}|sourcemap={self.sourcemap_active}"

    def compile(self, data: AssetData) -> AssetData:
        if data.compiled or data.ext.lower() not in SCSS_EXTENSIONS:
            return data

        include_paths = self.import_paths(data)
        digest = stage_digest(data.path, data.content, self.compile_settings(), self.import_digest(include_paths))
        key = create_key(data.bundle_key, ["compiled"], digest=digest)
        return self._memoize(key, lambda: self._compile(data, include_paths))

    def _compile(self, data: AssetData, include_paths: list[str]) -> AssetData:
        style = self.config.compile.style
        if style not in ALLOWED_COMPILE_STYLES:
            raise CompileError(f'Scss output style "{style}" doesn\'t exists.')

        declarations = "".join(
            f"${name}: {value};\n" for name, value in self.config.compile.variables.items()
        )
        try:
            if self.sourcemap_active and len(data.files) == 1:
                css = self._compile_with_sourcemap(data, declarations, include_paths, style)
            else:
                css = sass.compile(
                    string=declarations + decode_text(data, CompileError),
                    include_paths=include_paths,
                    output_style=style,
                )
        except sass.CompileError as exc:
            raise CompileError(f'Not able to compile "{data.path}": {exc}') from exc

        return replace(
            data,
            path=css_path(data.path),
            ext="css",
            subtype="text/css",
            content=css.encode("utf-8"),
            compiled=True,
        )

    def _compile_with_sourcemap(
        self, data: AssetData, declarations: str, include_paths: list[str], style: str
    ) -> str:
        # libsass only emits maps in filename mode: compile an entry file that
        # declares the variables and imports the source from its own directory
        source_dir, source_name = os.path.split(data.file)
        with tempfile.TemporaryDirectory(prefix="sitekit-scss-") as tmp_dir:
            entry = os.path.join(tmp_dir, "__sitekit_entry__.scss")
            with open(entry, "w", encoding="utf-8") as handle:
                handle.write(f'{declarations}@import "{source_name}";\n')
            css, _source_map = sass.compile(
                filename=entry,
                include_paths=[source_dir, *include_paths],
                output_style=style,
                source_map_filename=os.path.join(self.config.output_dir, css_path(data.path).lstrip("/") + ".map"),
                source_map_embed=True,
                source_map_contents=True,
                source_map_root="/",
            )
        return css

    def minify(self, data: AssetData) -> AssetData:
        # inline source maps would be stripped
        if self.sourcemap_active:
            return data
        if data.minified:
            return data
        if data.ext.lower() in SCSS_EXTENSIONS:
            data = self.compile(data)
        ext = data.ext.lower()
        if ext not in MINIFY_EXTENSIONS:
            return data
        if data.path.endswith(f".min.{data.ext}"):
            return replace(data, minified=True)

        key = create_key(data.bundle_key, ["minified"], digest=stage_digest(data.path, data.content))

        def build() -> AssetData:
            content = minify_content(ext, decode_text(data, MinifyError))
            path = re.sub(rf"\.{re.escape(data.ext)}$", f".min.{data.ext}", data.path)
            return replace(data, path=path, content=content.encode("utf-8"), minified=True)

        return self._memoize(key, build)

    def optimize(self, data: AssetData, file_path: str) -> AssetData:
        """Optimize the image already written at `file_path`; best-effort."""
        if data.type != "image" or data.optimized or not is_raster(data.ext):
            return data

        tags = ["optimized"]
        if data.width:
            tags.insert(0, f"{data.width}x")
        quality = self.config.images.quality
        key = create_key(data.bundle_key, tags, digest=stage_digest(data.path, data.content, f"quality={quality}"))

        try:
            if self.store.has(key):
                cached = AssetData.from_record(self.store.get(key))
                with open(file_path, "wb") as handle:
                    handle.write(cached.content)
                return cached

            size_before, size_after = optimize_image_file(file_path, quality)
            with open(file_path, "rb") as handle:
                content = handle.read()
        except (ImageError, OSError, ValueError) as exc:
            self.logger.warning('Asset "%s" not optimized: %s', data.path, exc)
            return data

        message = data.path
        if size_after < size_before:
            message = f"{message} {format_size_change(size_before, size_after)}"
        optimized = replace(data, content=content, optimized=True)
        self.store.set(key, optimized.to_record())
        self.logger.debug('Asset "%s" optimized', message)
        return optimized

    def resize(self, data: AssetData, width: int) -> AssetData:
        """Return a record for a copy of `data` scaled down to `width` pixels."""
        if data.type != "image":
            raise ImageError(f'Not able to resize "{data.path}": it\'s not an image')
        if width >= data.width:
            return data

        tag = f"{width}x"
        quality = self.config.images.quality
        digest = stage_digest(data.path, data.content_source, f"quality={quality}")
        key = create_key(data.bundle_key, [tag], digest=digest)

        def build() -> AssetData:
            if is_svg(data):
                raise ImageError(f'Not able to resize "{data.path}": vector images are not resizable')
            try:
                content = resize_image(data.content_source, width, data.ext, quality)
            except ImageError as exc:
                raise ImageError(f'Not able to resize image "{data.path}": {exc}') from exc
            path = "/" + join_path(self.config.assets_target, "thumbnails", str(width), data.path)
            new_width, new_height = image_size(content)
            return replace(
                data,
                bundle_key=create_key(data.bundle_key, [tag]),
                path=path,
                content=content,
                size=len(content),
                width=new_width,
                height=new_height,
                optimized=False,
            )

        return self._memoize(key, build)
