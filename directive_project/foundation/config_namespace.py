"""Strict config namespace helper with consumed-keys enforcement."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_MISSING = object()


def _join_path(parent: str, key: str) -> str:
    if not parent:
        return key
    return f"{parent}.{key}"


@dataclass
class ConfigNamespace:
    """Read keys from a mapping and fail on any key nobody asked for."""

    data: Mapping[str, Any]
    path: str
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)

    def consumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._consumed))

    def unconsumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(str(k) for k in self.data.keys() if k not in self._consumed))

    def assert_consumed(self) -> None:
        unknown = list(self.unconsumed_keys())
        if unknown:
            path = self.path or "<root>"
            consumed = ", ".join(self.consumed_keys()) or "<none>"
            raise ValueError(
                f"Unknown config keys under {path}: {', '.join(unknown)} (consumed: {consumed})"
            )

    def _get_raw(self, key: str, *, default: Any) -> Any:
        if not isinstance(key, str) or not key.strip():
            raise TypeError("ConfigNamespace key must be a non-empty string")
        normalized = key.strip()
        self._consumed.add(normalized)
        if normalized not in self.data:
            if default is _MISSING:
                raise ValueError(f"Missing required config key: {_join_path(self.path, normalized)}")
            return default
        return self.data.get(normalized)

    def get_value(self, key: str, *, default: Any = _MISSING) -> Any:
        """Return the raw value (no type validation)."""

        return self._get_raw(key, default=default)

    def get_str(self, key: str, *, default: str | None | object = _MISSING) -> str | None:
        raw = self._get_raw(key, default=default)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a string (type={type(raw).__name__})"
            )
        value = raw.strip()
        if not value:
            raise ValueError(f"{_join_path(self.path, key.strip())} cannot be empty")
        return value

    def get_list(self, key: str, *, default: list[Any] | tuple[Any, ...] | object = _MISSING) -> list[Any]:
        """Return a list as-is (items are not validated here)."""

        raw = self._get_raw(key, default=default)
        if raw is None:
            return []
        if not isinstance(raw, (list, tuple)):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a list (type={type(raw).__name__})"
            )
        return list(raw)

    def get_list_str(self, key: str, *, default: list[str] | tuple[str, ...] | object = _MISSING) -> list[str]:
        items: list[str] = []
        for idx, item in enumerate(self.get_list(key, default=default)):
            if not isinstance(item, str) or not item.strip():
                raise TypeError(
                    f"{_join_path(self.path, key.strip())}[{idx}] must be a non-empty string "
                    f"(type={type(item).__name__})"
                )
            items.append(item.strip())
        return items

    def get_mapping(self, key: str, *, default: Mapping[str, Any] | object = _MISSING) -> dict[str, Any]:
        """Return a mapping as an opaque dict (keys are not consumption-tracked)."""

        raw = self._get_raw(key, default=default)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a mapping (type={type(raw).__name__})"
            )
        return dict(raw)
