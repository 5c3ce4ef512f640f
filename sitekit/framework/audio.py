"""MP3 metadata backed by mutagen."""

from __future__ import annotations

from dataclasses import dataclass

from mutagen import MutagenError
from mutagen.mp3 import MP3

from sitekit.framework.errors import AudioError


@dataclass(frozen=True)
class AudioInfo:
    length: float
    bitrate: int
    sample_rate: int
    channels: int
    title: str = ""
    artist: str = ""


def _tag_text(tags, frame_id: str) -> str:
    if tags is None or frame_id not in tags:
        return ""
    return str(tags[frame_id])


def audio_info(file_path: str) -> AudioInfo:
    """Read stream properties and the ID3 title/artist of an MP3 file."""
    try:
        audio = MP3(file_path)
    except (MutagenError, OSError) as exc:
        raise AudioError(f'Not able to read audio file "{file_path}": {exc}') from exc

    return AudioInfo(
        length=float(audio.info.length),
        bitrate=int(audio.info.bitrate),
        sample_rate=int(audio.info.sample_rate),
        channels=int(audio.info.channels),
        title=_tag_text(audio.tags, "TIT2"),
        artist=_tag_text(audio.tags, "TPE1"),
    )
