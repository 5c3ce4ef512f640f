"""Source file resolution for assets.

Search order (first match wins):
  1) remote URL, fetched once into the remote cache directory
  2) <assets.dir>/
  3) <themes.dir>/<theme>/assets/ for each configured theme, in order
  4) <static.dir>/
  5) <themes.dir>/<theme>/static/ for each configured theme, in order
"""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from urllib.parse import urlsplit

import requests
from PIL import Image, UnidentifiedImageError

from sitekit.foundation.paths import extension_of, is_url, join_file, join_path, sanitize, slugify
from sitekit.framework.config import SiteConfig
from sitekit.framework.errors import AssetNotFoundError, EmptyRemoteContentError

# Types that `mimetypes` leaves unknown or reports inconsistently across platforms.
_KNOWN_SUBTYPES: dict[str, str] = {
    "css": "text/css",
    "scss": "text/x-scss",
    "sass": "text/x-sass",
    "js": "text/javascript",
    "mjs": "text/javascript",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "avif": "image/avif",
    "ico": "image/x-icon",
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
    "woff": "font/woff",
    "woff2": "font/woff2",
}


@dataclass(frozen=True)
class ResolvedFile:
    """A located source file and its classification. Content is read on demand."""

    reference: str
    file_path: str
    path: str
    ext: str
    type: str
    subtype: str
    size: int
    remote: bool = False

    def read(self) -> bytes:
        with open(self.file_path, "rb") as handle:
            return handle.read()


def classify(file_path: str, public_path: str) -> tuple[str, str]:
    """Return (type, subtype), e.g. ("image", "image/png")."""
    ext = extension_of(public_path).lower() or extension_of(file_path.replace(os.sep, "/")).lower()
    subtype = _KNOWN_SUBTYPES.get(ext)
    if subtype is None:
        subtype, _encoding = mimetypes.guess_type(public_path)
    if subtype is None:
        subtype, _encoding = mimetypes.guess_type(file_path)
    if subtype is None:
        subtype = _sniff_subtype(file_path)
    return subtype.split("/", 1)[0], subtype


def _sniff_subtype(file_path: str) -> str:
    try:
        with Image.open(file_path) as im:
            detected = Image.MIME.get(im.format or "")
        if detected:
            return detected
    except (UnidentifiedImageError, OSError):
        pass

    with open(file_path, "rb") as handle:
        head = handle.read(1024)
    try:
        head.decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain"


class PathResolver:
    def __init__(self, config: SiteConfig, *, logger: logging.Logger | None = None) -> None:
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    def search_dirs(self) -> list[str]:
        dirs = [self.config.assets_dir]
        dirs.extend(self.config.theme_dir(theme, "assets") for theme in self.config.themes)
        dirs.append(self.config.static_dir)
        dirs.extend(self.config.theme_dir(theme, "static") for theme in self.config.themes)
        return dirs

    def find_file(self, path: str) -> str | None:
        """Return the local file path for `path`, or None when nothing matches."""
        if is_url(path):
            return self._fetch_remote(path)

        for directory in self.search_dirs():
            candidate = join_file(directory, path)
            if os.path.isfile(candidate):
                return candidate
        return None

    def resolve(self, path: str, *, force_slash: bool = True) -> ResolvedFile:
        """
        Locate and classify a source reference.

        Raises:
            AssetNotFoundError: when no source matches.
            EmptyRemoteContentError: when a remote source is empty.
        """

        file_path = self.find_file(path)
        if file_path is None:
            raise AssetNotFoundError(f'Asset file "{path}" doesn\'t exist.')

        remote = is_url(path)
        if remote:
            public_path = self.remote_public_path(path)
            force_slash = True
        else:
            public_path = path
        if force_slash:
            public_path = "/" + public_path.lstrip("/")

        file_type, subtype = classify(file_path, public_path)
        return ResolvedFile(
            reference=path,
            file_path=file_path,
            path=public_path,
            ext=extension_of(public_path),
            type=file_type,
            subtype=subtype,
            size=os.path.getsize(file_path),
            remote=remote,
        )

    def remote_public_path(self, url: str) -> str:
        parts = urlsplit(url)
        public_path = sanitize(join_path(self.config.assets_target, parts.netloc, parts.path))
        if parts.query:
            public_path = join_path(public_path, slugify(parts.query))
            # stylesheet endpoints (web font CDNs) carry no extension
            if "/css" in parts.path:
                public_path += ".css"
        return public_path

    def remote_cache_file(self, url: str) -> str:
        parts = urlsplit(url)
        relative = slugify(f"{parts.netloc}{parts.path}-{parts.query}")
        return join_file(self.config.remote_cache_dir, sanitize(relative))

    def _fetch_remote(self, url: str) -> str | None:
        file_path = self.remote_cache_file(url)
        if os.path.isfile(file_path):
            return file_path

        try:
            response = requests.get(url)
        except requests.RequestException as exc:
            self.logger.debug("Remote asset %s unavailable: %s", url, exc)
            return None
        if response.status_code != 200:
            self.logger.debug("Remote asset %s unavailable: HTTP %s", url, response.status_code)
            return None

        content = response.content or b""
        if len(content) <= 1:
            raise EmptyRemoteContentError(f'Asset at "{url}" is empty.')

        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "wb") as handle:
            handle.write(content)
        self.logger.debug("Remote asset %s cached at %s", url, file_path)
        return file_path
