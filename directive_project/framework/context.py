from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PragmaState:
    enabled: bool = False
    items: set[str] = field(default_factory=set)
    suppressed: set[str] = field(default_factory=set)

    def describe(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "items": sorted(self.items),
            "suppressed": sorted(self.suppressed),
        }


@dataclass
class TargetContext:
    """The target that directives are applied to.

    `namespace` receives module/name bindings; `pragmas` tracks pragma-style
    switches. Not thread-safe: callers serialize work on one context.
    """

    name: str
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("directive_project"))
    namespace: dict[str, Any] = field(default_factory=dict)
    pragmas: dict[str, PragmaState] = field(default_factory=dict)
    applied: list[dict[str, Any]] = field(default_factory=list)

    def pragma(self, target: str) -> PragmaState:
        return self.pragmas.setdefault(target, PragmaState())

    def is_enabled(self, target: str, item: str | None = None) -> bool:
        state = self.pragmas.get(target)
        if state is None:
            return False
        if item is None:
            return state.enabled or bool(state.items)
        if item in state.suppressed:
            return False
        return item in state.items or state.enabled

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespace": sorted(self.namespace.keys()),
            "pragmas": {key: state.describe() for key, state in sorted(self.pragmas.items())},
            "applied": len(self.applied),
        }
