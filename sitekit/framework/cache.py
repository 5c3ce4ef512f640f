"""Persisted content store used to memoize asset construction and stage outputs.

Entries are JSON records, one file per key, named by the SHA-256 of the key.
Writes go through a temporary file and `os.replace`, so a second writer for the
same key replaces the file atomically with an identical record. Nothing is ever
evicted.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
import tempfile
import uuid
from typing import Any, Iterable, Mapping

KEY_SEPARATOR = "__"


def content_digest(content: bytes) -> str:
    return hashlib.md5(content).hexdigest()


def create_key(bundle_key: str, tags: Iterable[str] = (), *, digest: str | None = None) -> str:
    """Compose a store key from a bundle key, ordered stage tags and an input digest."""
    if not isinstance(bundle_key, str) or not bundle_key:
        raise ValueError("bundle_key must be a non-empty string")
    parts = [bundle_key]
    tag_list = [str(tag) for tag in tags if str(tag)]
    if tag_list:
        parts.append("_".join(tag_list))
    if digest:
        parts.append(digest)
    return KEY_SEPARATOR.join(parts)


class ContentStore:
    def __init__(self, root_dir: str, *, logger: logging.Logger | None = None) -> None:
        self.root_dir = os.path.abspath(root_dir)
        self.logger = logger or logging.getLogger(__name__)
        self._memory: dict[str, dict[str, Any]] = {}

    def _file_for(self, key: str) -> str:
        hashed = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.root_dir, hashed[:2], f"{hashed}.json")

    def has(self, key: str) -> bool:
        if key in self._memory:
            return True
        return os.path.isfile(self._file_for(key))

    def get(self, key: str) -> dict[str, Any]:
        cached = self._memory.get(key)
        if cached is not None:
            return dict(cached)

        path = self._file_for(key)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            raise KeyError(key) from None
        except json.JSONDecodeError as exc:
            raise ValueError(f"Corrupt content store entry {path}: {exc}") from exc

        if not isinstance(payload, Mapping) or payload.get("key") != key:
            raise ValueError(f"Content store entry {path} does not match key {key!r}")
        value = payload.get("value")
        if not isinstance(value, Mapping):
            raise ValueError(f"Content store entry {path} has no record value")

        self._memory[key] = dict(value)
        self.logger.debug("Content store hit: %s", key)
        return dict(value)

    def set(self, key: str, value: Mapping[str, Any]) -> None:
        if not isinstance(value, Mapping):
            raise TypeError(f"Content store values must be mappings (type={type(value).__name__})")
        record = dict(value)
        path = self._file_for(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{uuid.uuid4().hex}.", suffix=".tmp", dir=os.path.dirname(path)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump({"key": key, "value": record}, handle, ensure_ascii=False, sort_keys=True)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise

        self._memory[key] = record
        self.logger.debug("Content store set: %s", key)

    def clear(self) -> None:
        """Drop every entry (out-of-band invalidation)."""
        self._memory.clear()
        if os.path.isdir(self.root_dir):
            shutil.rmtree(self.root_dir)
