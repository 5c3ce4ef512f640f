"""Strict view over a config mapping: typed reads, and every key must be read."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_MISSING = object()


@dataclass
class ConfigNamespace:
    data: Mapping[str, Any]
    path: str
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)
    _children: dict[str, "ConfigNamespace"] = field(default_factory=dict, init=False, repr=False)

    def _qualified(self, key: str) -> str:
        return f"{self.path}.{key}" if self.path else key

    def _type_error(self, key: str, expected: str, value: Any) -> TypeError:
        return TypeError(f"{self._qualified(key)} must be {expected} (type={type(value).__name__})")

    def keys(self) -> tuple[str, ...]:
        return tuple(str(k) for k in self.data.keys())

    def assert_consumed(self) -> None:
        """Raise ValueError naming any key nobody read, here or in child namespaces."""
        unknown = sorted(str(k) for k in self.data.keys() if k not in self._consumed)
        if unknown:
            consumed = ", ".join(sorted(self._consumed)) or "<none>"
            raise ValueError(
                f"Unknown config keys under {self.path or '<root>'}: {', '.join(unknown)} (consumed: {consumed})"
            )
        for child in self._children.values():
            child.assert_consumed()

    def _read(self, key: str, default: Any) -> tuple[str, Any]:
        if not isinstance(key, str) or not key.strip():
            raise TypeError("Config key must be a non-empty string")
        key = key.strip()
        if key in self._children:
            raise ValueError(f"{self._qualified(key)} already read as a nested namespace")

        self._consumed.add(key)
        if key in self.data:
            return key, self.data[key]
        if default is _MISSING:
            raise ValueError(f"Missing required config key: {self._qualified(key)}")
        return key, default

    def namespace(self, key: str, *, default: Mapping[str, Any] | None = None) -> "ConfigNamespace":
        """Child namespace for `key`; a missing or null value falls back to `default` (or {})."""
        key = key.strip()
        if key in self._children:
            return self._children[key]

        self._consumed.add(key)
        raw = self.data.get(key)
        if raw is None:
            raw = dict(default or {})
        if not isinstance(raw, Mapping):
            raise self._type_error(key, "a mapping", raw)

        child = ConfigNamespace(dict(raw), path=self._qualified(key))
        self._children[key] = child
        return child

    def get_bool(self, key: str, *, default: bool | object = _MISSING) -> bool:
        key, value = self._read(key, default)
        if not isinstance(value, bool):
            raise self._type_error(key, "a boolean", value)
        return value

    def get_int(
        self,
        key: str,
        *,
        default: int | object = _MISSING,
        min_value: int | None = None,
        max_value: int | None = None,
    ) -> int:
        key, value = self._read(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._type_error(key, "an int", value)
        if min_value is not None and value < min_value:
            raise ValueError(f"{self._qualified(key)} must be >= {min_value} (got {value})")
        if max_value is not None and value > max_value:
            raise ValueError(f"{self._qualified(key)} must be <= {max_value} (got {value})")
        return value

    def get_str(self, key: str, *, default: str | object = _MISSING, allow_empty: bool = False) -> str:
        key, value = self._read(key, default)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise self._type_error(key, "a string", value)
        value = value.strip()
        if not value and not allow_empty:
            raise ValueError(f"{self._qualified(key)} cannot be empty")
        return value

    def get_list_str(self, key: str, *, default: list[str] | object = _MISSING) -> list[str]:
        """A list of non-empty strings; a bare string is read as a one-item list."""
        key, raw = self._read(key, default)
        if raw is None:
            raw = []
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, (list, tuple)):
            raise self._type_error(key, "a list[str]", raw)

        items: list[str] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, str):
                raise self._type_error(f"{key}[{idx}]", "a string", item)
            if not item.strip():
                raise ValueError(f"{self._qualified(key)}[{idx}] cannot be empty")
            items.append(item.strip())
        return items

    def get_scalar_mapping(self, key: str, *, default: Mapping[str, Any] | object = _MISSING) -> dict[str, str]:
        """Flat name -> scalar mapping with values stringified (booleans as true/false)."""
        key, raw = self._read(key, default)
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise self._type_error(key, "a mapping", raw)

        out: dict[str, str] = {}
        for name, value in raw.items():
            if value is None or isinstance(value, (Mapping, list, tuple)):
                raise self._type_error(f"{key}.{name}", "a scalar", value)
            if isinstance(value, bool):
                out[str(name)] = "true" if value else "false"
            else:
                out[str(name)] = str(value)
        return out
