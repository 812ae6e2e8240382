"""Directive providers.

A provider answers one question: given the requested bundle names (and the
call site's extra arguments), which directives apply, in declaration order?

Merging across providers is always explicit. A `StaticProvider` never looks
at any other provider; a `ChainedProvider` calls its parent's `resolve_base`
and then appends (or overrides) with its own tables; a `DynamicProvider`
receives its parent, if any, and decides for itself whether to call it.
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Protocol

from directivekit.declarations import parse_declarations
from directivekit.directive_types import Bundle, Directive
from directivekit.errors import UnknownBundleError


class Provider(Protocol):
    def resolve_base(
        self, bundle_names: Sequence[str], extra_args: Mapping[str, Any]
    ) -> tuple[Directive, ...]:
        """Return always-directives followed by each requested bundle, in request order."""

    def bundle_names(self) -> tuple[str, ...]:
        ...


def suggest_bundles(name: str, available: Iterable[str], *, limit: int = 3) -> tuple[str, ...]:
    key = (name or "").strip()
    if not key:
        return ()
    return tuple(difflib.get_close_matches(key, sorted(available), n=limit))


def unknown_bundle(name: str, available: Iterable[str]) -> UnknownBundleError:
    listing = tuple(sorted(available))
    return UnknownBundleError(name, available=listing, suggestions=suggest_bundles(name, listing))


def _bundle_table(bundles: Mapping[str, Bundle] | Iterable[Bundle]) -> dict[str, Bundle]:
    items = bundles.values() if isinstance(bundles, Mapping) else bundles
    table: dict[str, Bundle] = {}
    for bundle in items:
        if not isinstance(bundle, Bundle):
            raise TypeError(f"Provider bundles must be Bundle values (type={type(bundle).__name__})")
        if bundle.name in table:
            raise ValueError(f"Duplicate bundle name: {bundle.name}")
        table[bundle.name] = bundle
    if isinstance(bundles, Mapping):
        for key, bundle in bundles.items():
            if key != bundle.name:
                raise ValueError(f"Bundle table key {key!r} does not match Bundle.name {bundle.name!r}")
    return table


def _directive_tuple(items: Iterable[Directive], *, path: str) -> tuple[Directive, ...]:
    out = tuple(items)
    for idx, item in enumerate(out):
        if not isinstance(item, Directive):
            raise TypeError(f"{path}[{idx}] must be a Directive (type={type(item).__name__})")
    return out


def bundles_from_declarations(
    bundles: Mapping[str, Sequence[Any]], *, source: str | None = None
) -> dict[str, Bundle]:
    table: dict[str, Bundle] = {}
    for name, entries in bundles.items():
        label = f"{source}.bundles.{name}" if source else f"bundles.{name}"
        bundle = Bundle(name=name, directives=parse_declarations(entries, source=label))
        if bundle.name in table:
            raise ValueError(f"Duplicate bundle name after normalization: {bundle.name}")
        table[bundle.name] = bundle
    return table


@dataclass(frozen=True)
class StaticProvider:
    always: tuple[Directive, ...] = ()
    bundles: Mapping[str, Bundle] = field(default_factory=dict)
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "always", _directive_tuple(self.always, path="StaticProvider.always"))
        object.__setattr__(self, "bundles", MappingProxyType(_bundle_table(self.bundles)))

    @classmethod
    def from_declarations(
        cls,
        *,
        always: Sequence[Any] = (),
        bundles: Mapping[str, Sequence[Any]] | None = None,
        name: str | None = None,
    ) -> "StaticProvider":
        source = name or "provider"
        return cls(
            always=parse_declarations(always, source=f"{source}.always"),
            bundles=bundles_from_declarations(bundles or {}, source=source),
            name=name,
        )

    def bundle_names(self) -> tuple[str, ...]:
        return tuple(sorted(self.bundles.keys()))

    def bundle(self, name: str) -> Bundle:
        bundle = self.bundles.get(name)
        if bundle is None:
            raise unknown_bundle(name, self.bundles.keys())
        return bundle

    def resolve_base(
        self, bundle_names: Sequence[str], extra_args: Mapping[str, Any]
    ) -> tuple[Directive, ...]:
        # Look every name up first so an unknown bundle fails before any output.
        selected = [self.bundle(name) for name in bundle_names]
        out: list[Directive] = list(self.always)
        for bundle in selected:
            out.extend(bundle.directives)
        return tuple(out)


@dataclass(frozen=True)
class ChainedProvider:
    """Provider that delegates to `parent`, then appends its own always-list and bundles.

    Requested names found in this provider's own table override a parent bundle
    of the same name; the remaining names are resolved by the parent (which
    raises `UnknownBundleError` for names neither side knows).
    """

    parent: Provider
    always: tuple[Directive, ...] = ()
    bundles: Mapping[str, Bundle] = field(default_factory=dict)
    name: str | None = None

    def __post_init__(self) -> None:
        if not callable(getattr(self.parent, "resolve_base", None)):
            raise TypeError(
                f"ChainedProvider.parent must provide resolve_base (type={type(self.parent).__name__})"
            )
        object.__setattr__(self, "always", _directive_tuple(self.always, path="ChainedProvider.always"))
        object.__setattr__(self, "bundles", MappingProxyType(_bundle_table(self.bundles)))

    @classmethod
    def from_declarations(
        cls,
        parent: Provider,
        *,
        always: Sequence[Any] = (),
        bundles: Mapping[str, Sequence[Any]] | None = None,
        name: str | None = None,
    ) -> "ChainedProvider":
        source = name or "provider"
        return cls(
            parent=parent,
            always=parse_declarations(always, source=f"{source}.always"),
            bundles=bundles_from_declarations(bundles or {}, source=source),
            name=name,
        )

    def bundle_names(self) -> tuple[str, ...]:
        return tuple(sorted(set(self.parent.bundle_names()) | set(self.bundles.keys())))

    def resolve_base(
        self, bundle_names: Sequence[str], extra_args: Mapping[str, Any]
    ) -> tuple[Directive, ...]:
        own = [name for name in bundle_names if name in self.bundles]
        inherited = [name for name in bundle_names if name not in self.bundles]

        try:
            out: list[Directive] = list(self.parent.resolve_base(tuple(inherited), extra_args))
        except UnknownBundleError as exc:
            raise unknown_bundle(exc.bundle, self.bundle_names()) from exc

        out.extend(self.always)
        for name in own:
            out.extend(self.bundles[name].directives)
        return tuple(out)


DynamicFn = Callable[[tuple[str, ...], Mapping[str, Any], "Provider | None"], Sequence[Any]]


@dataclass(frozen=True)
class DynamicProvider:
    """Provider backed by an arbitrary function.

    `fn(bundle_names, extra_args, parent)` returns declarations (or Directives).
    When `known_bundles` is given, unknown names fail before `fn` runs;
    otherwise `fn` owns that check.
    """

    fn: DynamicFn
    parent: Provider | None = None
    known_bundles: tuple[str, ...] | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise TypeError(f"DynamicProvider.fn must be callable (type={type(self.fn).__name__})")
        if self.known_bundles is not None:
            object.__setattr__(
                self, "known_bundles", tuple(str(item).strip() for item in self.known_bundles)
            )

    def bundle_names(self) -> tuple[str, ...]:
        names: set[str] = set(self.known_bundles or ())
        if self.parent is not None:
            names.update(self.parent.bundle_names())
        return tuple(sorted(names))

    def resolve_base(
        self, bundle_names: Sequence[str], extra_args: Mapping[str, Any]
    ) -> tuple[Directive, ...]:
        names = tuple(bundle_names)
        if self.known_bundles is not None:
            known = set(self.bundle_names())
            for name in names:
                if name not in known:
                    raise unknown_bundle(name, known)
        entries = self.fn(names, extra_args, self.parent)
        return parse_declarations(entries, source=self.name or "dynamic")
