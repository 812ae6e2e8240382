from __future__ import annotations

"""Build named providers from the `providers` config section.

Each provider entry is one of:

    base:                       # static
      always: [strict, warnings]
      bundles:
        withSig: [feature, [signatures], ">-warnings", [experimental::signatures]]

    app:                        # chained onto `base`
      parent: base
      always: [...]
      bundles: {...}

    computed:                   # dynamic
      dynamic: !generator my_pkg.providers:directives_for
      known_bundles: [fast, safe]
      parent: base              # optional; handed to the function, never merged implicitly

Generator entries inside declaration lists use the same tag:
`- !generator my_pkg.generators:late_imports`.
"""

import difflib
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from directivekit.directive_types import Directive
from directivekit.errors import DeclarationError
from directivekit.providers import ChainedProvider, DynamicProvider, Provider, StaticProvider
from directive_project.foundation.config_io import GeneratorRef
from directive_project.foundation.config_namespace import ConfigNamespace

logger = logging.getLogger(__name__)


def _materialize_generators(entries: Sequence[Any], *, path: str) -> list[Any]:
    if isinstance(entries, (str, bytes)) or not isinstance(entries, (list, tuple)):
        raise DeclarationError(f"{path} must be a list (type={type(entries).__name__})")
    out: list[Any] = []
    for entry in entries:
        if isinstance(entry, GeneratorRef):
            out.append(
                Directive(
                    target=f"&{entry.path}",
                    action_kind="generate",
                    generator=entry,
                    source=path,
                )
            )
        else:
            out.append(entry)
    return out


def _bundle_declarations(raw: Mapping[str, Any], *, path: str) -> dict[str, list[Any]]:
    out: dict[str, list[Any]] = {}
    for name, entries in raw.items():
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"{path} bundle names must be non-empty strings (got {name!r})")
        out[name.strip()] = _materialize_generators(entries or [], path=f"{path}.{name}")
    return out


@dataclass(frozen=True)
class ProviderRegistry:
    _by_name: dict[str, Provider]

    @classmethod
    def from_config(cls, providers_cfg: Mapping[str, Any]) -> "ProviderRegistry":
        if not isinstance(providers_cfg, Mapping):
            raise ValueError("providers must be a mapping")

        raw: dict[str, Mapping[str, Any]] = {}
        for name, body in providers_cfg.items():
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"providers keys must be non-empty strings (got {name!r})")
            if body is None:
                body = {}
            if not isinstance(body, Mapping):
                raise ValueError(
                    f"providers.{name} must be a mapping (type={type(body).__name__})"
                )
            raw[name.strip()] = body

        built: dict[str, Provider] = {}

        def build(name: str, stack: tuple[str, ...]) -> Provider:
            existing = built.get(name)
            if existing is not None:
                return existing
            if name in stack:
                cycle = " -> ".join((*stack, name))
                raise ValueError(f"Provider parent cycle: {cycle}")

            path = f"providers.{name}"
            ns = ConfigNamespace(raw[name], path=path)
            ns.get_str("doc", default=None)
            parent_name = ns.get_str("parent", default=None)
            parent: Provider | None = None
            if parent_name is not None:
                if parent_name not in raw:
                    available = ", ".join(sorted(raw.keys())) or "<none>"
                    raise ValueError(
                        f"{path}.parent={parent_name} is not a defined provider (available: {available})"
                    )
                parent = build(parent_name, (*stack, name))

            dynamic = ns.get_value("dynamic", default=None)
            provider: Provider
            if dynamic is not None:
                if not isinstance(dynamic, GeneratorRef):
                    raise ValueError(f"{path}.dynamic must use the !generator tag")
                known: tuple[str, ...] | None = None
                if raw[name].get("known_bundles") is not None:
                    known = tuple(ns.get_list_str("known_bundles"))
                else:
                    ns.get_value("known_bundles", default=None)
                provider = DynamicProvider(fn=dynamic, parent=parent, known_bundles=known, name=name)
            else:
                always = _materialize_generators(ns.get_list("always", default=[]), path=f"{path}.always")
                bundles = _bundle_declarations(ns.get_mapping("bundles", default={}), path=f"{path}.bundles")
                if parent is None:
                    provider = StaticProvider.from_declarations(always=always, bundles=bundles, name=name)
                else:
                    provider = ChainedProvider.from_declarations(
                        parent, always=always, bundles=bundles, name=name
                    )
            ns.assert_consumed()

            built[name] = provider
            logger.debug("Built provider %s (%s)", name, type(provider).__name__)
            return provider

        for name in raw:
            build(name, ())

        return cls(_by_name={name: built[name] for name in raw})

    def available(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_name.keys()))

    def suggest(self, name: str, *, limit: int = 3) -> tuple[str, ...]:
        key = (name or "").strip()
        if not key:
            return ()
        return tuple(difflib.get_close_matches(key, list(self.available()), n=limit))

    def get(self, name: str) -> Provider:
        key = (name or "").strip()
        provider = self._by_name.get(key)
        if provider is None:
            available = ", ".join(self.available()) or "<none>"
            suggestions = self.suggest(key)
            hint = f" (did you mean: {', '.join(suggestions)})" if suggestions else ""
            raise ValueError(f"Unknown provider: {name} (available: {available}){hint}")
        return provider

    def describe(self) -> tuple[dict[str, Any], ...]:
        rows: list[dict[str, Any]] = []
        for name in self.available():
            provider = self._by_name[name]
            rows.append(
                {
                    "provider": name,
                    "kind": type(provider).__name__,
                    "bundles": list(provider.bundle_names()),
                }
            )
        return tuple(rows)
