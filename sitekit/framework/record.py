from __future__ import annotations

import base64
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Mapping

_BYTES_FIELDS = ("content_source", "content")


@dataclass(frozen=True)
class AssetData:
    """Immutable snapshot of an asset at one point of its transformation chain.

    `path_source` and `content_source` describe the untransformed bundle;
    `path` and `content` reflect every stage applied so far.
    """

    bundle_key: str
    files: tuple[str, ...] = ()
    filename: str = ""
    path_source: str = ""
    path: str = ""
    ext: str = ""
    type: str = ""
    subtype: str = ""
    size: int = 0
    content_source: bytes = b""
    content: bytes = b""
    width: int = 0
    height: int = 0
    missing: bool = False
    fingerprinted: bool = False
    compiled: bool = False
    minified: bool = False
    optimized: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def file(self) -> str:
        """Absolute path of the first bundle member ("" when every member is missing)."""
        return self.files[0] if self.files else ""

    def to_record(self) -> dict[str, Any]:
        record = asdict(self)
        for name in _BYTES_FIELDS:
            record[name] = base64.b64encode(record[name]).decode("ascii")
        record["files"] = list(self.files)
        record["extra"] = dict(self.extra)
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AssetData":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(record) - known)
        if unknown:
            raise ValueError(f"Unknown asset record fields: {', '.join(unknown)}")

        values = dict(record)
        for name in _BYTES_FIELDS:
            if name in values:
                values[name] = base64.b64decode(values[name])
        values["files"] = tuple(values.get("files") or ())
        values["extra"] = dict(values.get("extra") or {})
        return cls(**values)
