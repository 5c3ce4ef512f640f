from __future__ import annotations

import base64
import hashlib
import logging
import os
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from sitekit.framework.cache import ContentStore, create_key
from sitekit.framework.config import AssetOptions
from sitekit.framework.audio import AudioInfo, audio_info
from sitekit.framework.errors import AssetError, AssetNotFoundError, AudioError, BundleError, ImageError
from sitekit.framework.media import data_url
from sitekit.framework.record import AssetData
from sitekit.framework.resolver import PathResolver, ResolvedFile
from sitekit.framework.stages import probe_size

if TYPE_CHECKING:
    from sitekit.framework.session import BuildSession

BUNDLE_NAMES: dict[str, str] = {"scss": "styles", "css": "styles", "js": "scripts"}


def _normalize_paths(paths: str | Sequence[str]) -> list[str]:
    items = [paths] if isinstance(paths, str) else list(paths)
    if not items:
        raise BundleError("The path parameter of asset() can't be empty.")
    for item in items:
        if not isinstance(item, str) or not item.strip():
            raise BundleError("The path parameter of asset() can't be empty.")
    return [item.strip() for item in items]


def _construction_digest(members: Sequence[ResolvedFile | None], options: AssetOptions) -> str:
    hasher = hashlib.md5()
    for member in members:
        if member is None:
            hasher.update(b"<missing>\n")
            continue
        stat = os.stat(member.file_path)
        hasher.update(f"{member.file_path}|{member.path}|{stat.st_size}|{stat.st_mtime_ns}\n".encode("utf-8"))
    hasher.update(f"filename={options.filename}|force_slash={options.force_slash}".encode("utf-8"))
    return hasher.hexdigest()


def build_bundle(
    paths: str | Sequence[str],
    options: AssetOptions,
    *,
    resolver: PathResolver,
    store: ContentStore,
    logger: logging.Logger | None = None,
) -> AssetData:
    """
    Resolve, validate and concatenate bundle members into an untransformed record.

    Members must share type and extension; each one is checked against the
    previous one as soon as it is resolved, before any content is read.

    Raises:
        BundleError: on empty entries, heterogeneous members or an unsupported
            multi-file extension.
        AssetNotFoundError: when a member is missing and `ignore_missing` is off.
    """

    logger = logger or logging.getLogger(__name__)
    refs = _normalize_paths(paths)
    bundle_key = "_".join(refs)

    members: list[ResolvedFile | None] = []
    previous: ResolvedFile | None = None
    for ref in refs:
        try:
            member = resolver.resolve(ref, force_slash=options.force_slash)
        except AssetNotFoundError:
            if not options.ignore_missing:
                raise
            logger.debug('Asset file "%s" is missing (ignored)', ref)
            members.append(None)
            continue
        if previous is not None:
            if member.type != previous.type:
                raise BundleError(f"Asset bundle type error ({member.type} != {previous.type}).")
            if member.ext != previous.ext:
                raise BundleError(f"Asset bundle extension error ({member.ext} != {previous.ext}).")
        previous = member
        members.append(member)

    key = create_key(bundle_key, ["bundle"], digest=_construction_digest(members, options))
    if store.has(key):
        return AssetData.from_record(store.get(key))

    present = [member for member in members if member is not None]
    if not present:
        data = AssetData(bundle_key=bundle_key, missing=True)
        store.set(key, data.to_record())
        return data

    content = b"".join(member.read() for member in present)
    first = present[0]
    path = first.path
    if options.filename:
        path = "/" + options.filename.lstrip("/")

    data = AssetData(
        bundle_key=bundle_key,
        files=tuple(member.file_path for member in present),
        filename=first.path,
        path_source=first.path,
        path=path,
        ext=first.ext,
        type=first.type,
        subtype=first.subtype,
        size=sum(member.size for member in present),
        content_source=content,
        content=content,
    )
    if data.type == "image":
        width, height = probe_size(data)
        data = replace(data, width=width, height=height)

    if len(refs) > 1 and not options.filename:
        name = BUNDLE_NAMES.get(data.ext)
        if name is None:
            raise BundleError('Asset bundle supports "scss, css and js" files only.')
        data = replace(data, path=f"/{name}.{data.ext}")

    store.set(key, data.to_record())
    return data


class Asset:
    """
    One or more homogeneous source files built into a single transformable unit.

    Construction loads the bundle and applies the configured toggles in order:
    fingerprint, compile, minify. Optimization is deferred until the asset is
    saved. `resize()` returns a new Asset and leaves the receiver untouched.
    """

    def __init__(
        self,
        session: "BuildSession",
        paths: str | Sequence[str],
        options: AssetOptions | Mapping[str, Any] | None = None,
    ) -> None:
        self.session = session
        if isinstance(options, AssetOptions):
            self.options = options
        else:
            self.options = AssetOptions.from_mapping(options, session.config)
        self._data = build_bundle(
            paths,
            self.options,
            resolver=session.resolver,
            store=session.store,
            logger=session.logger,
        )

        if self.options.fingerprint:
            self.fingerprint()
        if session.config.compile.enabled:
            self.compile()
        if self.options.minify:
            self.minify()

    @classmethod
    def _derive(cls, source: "Asset", data: AssetData) -> "Asset":
        derived = cls.__new__(cls)
        derived.session = source.session
        derived.options = source.options
        derived._data = data
        return derived

    def __str__(self) -> str:
        return self._data.path

    def __repr__(self) -> str:
        return f"Asset(key={self._data.bundle_key!r}, path={self._data.path!r})"

    @property
    def data(self) -> AssetData:
        return self._data

    @property
    def key(self) -> str:
        return self._data.bundle_key

    @property
    def file(self) -> str:
        return self._data.file

    @property
    def files(self) -> tuple[str, ...]:
        return self._data.files

    @property
    def filename(self) -> str:
        return self._data.filename

    @property
    def path_source(self) -> str:
        return self._data.path_source

    @property
    def path(self) -> str:
        return self._data.path

    @property
    def ext(self) -> str:
        return self._data.ext

    @property
    def type(self) -> str:
        return self._data.type

    @property
    def subtype(self) -> str:
        return self._data.subtype

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def content_source(self) -> bytes:
        return self._data.content_source

    @property
    def content(self) -> bytes:
        return self._data.content

    @property
    def width(self) -> int:
        return self._data.width

    @property
    def height(self) -> int:
        return self._data.height

    @property
    def missing(self) -> bool:
        return self._data.missing

    @property
    def fingerprinted(self) -> bool:
        return self._data.fingerprinted

    @property
    def compiled(self) -> bool:
        return self._data.compiled

    @property
    def minified(self) -> bool:
        return self._data.minified

    @property
    def optimized(self) -> bool:
        return self._data.optimized

    @property
    def optimize_requested(self) -> bool:
        return self.options.optimize

    @property
    def extra(self) -> Mapping[str, Any]:
        return self._data.extra

    def with_extra(self, **values: Any) -> "Asset":
        """Return a copy carrying additional free-form properties."""
        merged = dict(self._data.extra)
        merged.update(values)
        return Asset._derive(self, replace(self._data, extra=merged))

    def fingerprint(self) -> "Asset":
        self._data = self.session.pipeline.fingerprint(self._data)
        return self

    def compile(self) -> "Asset":
        self._data = self.session.pipeline.compile(self._data)
        return self

    def minify(self) -> "Asset":
        self._data = self.session.pipeline.minify(self._data)
        return self

    def optimize(self, file_path: str) -> "Asset":
        self._data = self.session.pipeline.optimize(self._data, file_path)
        return self

    def resize(self, width: int) -> "Asset":
        resized = self.session.pipeline.resize(self._data, int(width))
        if resized is self._data:
            return self
        return Asset._derive(self, resized)

    def integrity(self, algo: str = "sha384") -> str:
        """Subresource Integrity value of the current content."""
        digest = hashlib.new(algo, self._data.content).digest()
        return f"{algo}-{base64.b64encode(digest).decode('ascii')}"

    def data_url(self) -> str:
        if self._data.type != "image":
            raise ImageError(f'Can\'t get data URL of "{self._data.path}"')
        return data_url(self._data.content, self._data.subtype)

    def audio(self) -> AudioInfo:
        """MP3 stream properties of the first bundle member."""
        if self._data.type != "audio":
            raise AudioError(f'Not able to get audio infos of "{self._data.path}"')
        return audio_info(self._data.file)

    def save(self) -> str | None:
        return self.session.persister.save(self)

    def publish(self) -> str:
        """Save the asset and return its public path; save failures are logged."""
        try:
            self.save()
        except AssetError as exc:
            self.session.logger.error("%s", exc)
        return self._data.path
