import io
import logging
from pathlib import Path

import pytest
from PIL import Image

from sitekit.framework.config import SiteConfig
from sitekit.framework.session import BuildSession


def image_bytes(size: tuple[int, int], fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def mp3_bytes(frames: int = 40) -> bytes:
    # MPEG-1 Layer III, 128 kbit/s, 44.1 kHz, joint stereo: 417-byte frames
    frame = bytes([0xFF, 0xFB, 0x90, 0x64]) + b"\x00" * 413
    return frame * frames


def write_file(root: Path, rel: str, content) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    return path


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    for name in ("assets", "static", "themes"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def make_session(site_root: Path):
    def _make(cfg: dict | None = None, **kwargs) -> BuildSession:
        config = SiteConfig.from_dict(cfg or {}, root=str(site_root))
        kwargs.setdefault("logger", logging.getLogger("sitekit.tests"))
        return BuildSession(config=config, **kwargs)

    return _make
