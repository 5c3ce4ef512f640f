"""Path, URL and slug helpers shared by the resolver, assets and output paths."""

from __future__ import annotations

import os
import re
import unicodedata
from urllib.parse import urlsplit

_UNSAFE_PATH_CHARS = ("<", ">", ":", '"', "\\", "|", "?", "*")
_SLUG_INVALID_RE = re.compile(r"[^a-z0-9_./-]+")
_SLUG_DASHES_RE = re.compile(r"-{2,}")


def is_url(value: str) -> bool:
    parts = urlsplit(value or "")
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def join_path(*parts: str) -> str:
    """Join URL-style path segments with `/`, dropping empty segments.

    A leading slash on the first non-empty segment is preserved.
    """

    segments: list[str] = []
    leading = False
    for part in parts:
        if part is None:
            continue
        text = str(part).replace("\\", "/")
        if not segments and text.startswith("/"):
            leading = True
        for piece in text.split("/"):
            if piece:
                segments.append(piece)
    joined = "/".join(segments)
    return f"/{joined}" if leading else joined


def join_file(base: str, *parts: str) -> str:
    """Join a filesystem base directory with URL-style relative segments."""
    relative = join_path(*parts).lstrip("/")
    if not relative:
        return os.path.normpath(base)
    return os.path.normpath(os.path.join(base, *relative.split("/")))


def sanitize(value: str) -> str:
    """Replace characters that are invalid in file names with `_`."""
    for char in _UNSAFE_PATH_CHARS:
        value = value.replace(char, "_")
    return value


def slugify(value: str) -> str:
    """Lowercase ASCII slug; separators and unsupported characters become `-`."""
    normalized = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_INVALID_RE.sub("-", normalized.lower())
    slug = _SLUG_DASHES_RE.sub("-", slug)
    return slug.strip("-")


def extension_of(path: str) -> str:
    """Return the extension (without dot) of the last segment of a URL-style path."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name.lstrip("."):
        return ""
    return name.rsplit(".", 1)[-1]
