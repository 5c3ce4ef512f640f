"""Image helpers backed by Pillow.

Resizing preserves aspect ratio and never enlarges. Optimization re-encodes in
place and keeps the original file when re-encoding does not shrink it.
"""

from __future__ import annotations

import base64
import io
import os
import re
import xml.etree.ElementTree as ET

from PIL import Image, UnidentifiedImageError

from sitekit.framework.errors import ImageError

_PIL_FORMATS: dict[str, str] = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
    "tif": "TIFF",
    "tiff": "TIFF",
    "ico": "ICO",
}

_LEADING_NUMBER_RE = re.compile(r"^\s*([0-9]+(?:\.[0-9]*)?)")


def is_raster(ext: str) -> bool:
    return (ext or "").lower() in _PIL_FORMATS


def pil_format(ext: str) -> str:
    fmt = _PIL_FORMATS.get((ext or "").lower())
    if fmt is None:
        raise ImageError(f"Unsupported image format: {ext!r}")
    return fmt


def _save_kwargs(fmt: str, quality: int) -> dict[str, object]:
    if fmt in ("JPEG", "WEBP"):
        return {"quality": int(quality), "optimize": True}
    if fmt == "PNG":
        return {"optimize": True}
    return {}


def image_size(content: bytes) -> tuple[int, int]:
    """Return (width, height) read from raster image bytes."""
    try:
        with Image.open(io.BytesIO(content)) as im:
            return im.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageError(f"Not able to read image size: {exc}") from exc


def _svg_length(value: str | None) -> int:
    if not value:
        return 0
    match = _LEADING_NUMBER_RE.match(value)
    if not match:
        return 0
    return int(float(match.group(1)))


def svg_size(content: bytes) -> tuple[int, int] | None:
    """Return the declared (width, height) of an SVG root element, or None if unparsable."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        return None
    return _svg_length(root.get("width")), _svg_length(root.get("height"))


def target_size(width: int, height: int, target_width: int) -> tuple[int, int]:
    """Compute (new_w, new_h) for `target_width`, preserving ratio and never enlarging."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")
    if target_width <= 0:
        raise ValueError("target_width must be > 0")
    if target_width >= width:
        return width, height

    new_h = int(round(height * (target_width / float(width))))
    return target_width, max(1, new_h)


def resize_image(content: bytes, width: int, ext: str, quality: int) -> bytes:
    """Resize raster image bytes to `width` and re-encode them as `ext`."""
    fmt = pil_format(ext)
    try:
        with Image.open(io.BytesIO(content)) as im:
            im.load()
            new_size = target_size(im.width, im.height, width)
            resized = im.convert("RGBA") if im.mode == "P" else im.copy()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageError(f"Not able to resize image: {exc}") from exc

    try:
        resized = resized.resize(new_size, resample=Image.Resampling.LANCZOS)
        if fmt == "JPEG" and resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")
        buffer = io.BytesIO()
        resized.save(buffer, format=fmt, **_save_kwargs(fmt, quality))
    except (OSError, ValueError, KeyError) as exc:
        raise ImageError(f"Not able to encode image: {exc}") from exc
    return buffer.getvalue()


def optimize_image_file(file_path: str, quality: int) -> tuple[int, int]:
    """
    Re-encode an image file in place at `quality`.

    Returns (size_before, size_after). The file is left untouched when the
    re-encoded bytes are not smaller.
    """

    size_before = os.path.getsize(file_path)
    ext = os.path.splitext(file_path)[1].lstrip(".")
    fmt = pil_format(ext)

    with Image.open(file_path) as im:
        im.load()
        buffer = io.BytesIO()
        im.save(buffer, format=fmt, **_save_kwargs(fmt, quality))

    optimized = buffer.getvalue()
    if len(optimized) >= size_before:
        return size_before, size_before

    with open(file_path, "wb") as handle:
        handle.write(optimized)
    return size_before, len(optimized)


def data_url(content: bytes, subtype: str) -> str:
    return f"data:{subtype};base64,{base64.b64encode(content).decode('ascii')}"
