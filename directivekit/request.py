"""Call-site request model and the flat request token grammar.

A request stream looks like::

    ["withSig", "other", "-exclude", ["warnings", "exporter", ["bar"]], "--pkg", "app"]

Bundle names come first. `-exclude` is the only engine-reserved key; custom
keys use the `--` prefix and carry one value each.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from directivekit.directive_types import RESERVED_PREFIX, Exclusion
from directivekit.errors import MalformedRequestError

EXCLUDE_KEY = "-exclude"
CUSTOM_PREFIX = "--"


def _check_bundle_name(name: Any, *, path: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise MalformedRequestError(f"{path} must be a non-empty bundle name (got {name!r})")
    normalized = name.strip()
    if normalized.startswith(RESERVED_PREFIX):
        raise MalformedRequestError(
            f"{path} bundle name cannot start with {RESERVED_PREFIX!r}: {normalized}"
        )
    return normalized


@dataclass(frozen=True)
class Request:
    bundle_names: tuple[str, ...] = ()
    exclusions: tuple[Exclusion, ...] = ()
    extra_args: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.bundle_names, str):
            raise MalformedRequestError("Request.bundle_names must be a sequence of names, not a string")
        names = tuple(
            _check_bundle_name(name, path=f"request.bundle_names[{idx}]")
            for idx, name in enumerate(self.bundle_names)
        )
        object.__setattr__(self, "bundle_names", names)

        exclusions = tuple(self.exclusions)
        for idx, item in enumerate(exclusions):
            if not isinstance(item, Exclusion):
                raise MalformedRequestError(
                    f"request.exclusions[{idx}] must be an Exclusion (type={type(item).__name__})"
                )
        object.__setattr__(self, "exclusions", exclusions)

        if not isinstance(self.extra_args, Mapping):
            raise MalformedRequestError(
                f"Request.extra_args must be a mapping (type={type(self.extra_args).__name__})"
            )
        for key in self.extra_args:
            if not isinstance(key, str) or not key.startswith(CUSTOM_PREFIX) or key == CUSTOM_PREFIX:
                raise MalformedRequestError(
                    f"Extra argument keys must start with {CUSTOM_PREFIX!r} (got {key!r})"
                )
        object.__setattr__(self, "extra_args", dict(self.extra_args))

    def describe(self) -> dict[str, Any]:
        return {
            "bundles": list(self.bundle_names),
            "exclude": [
                item.target if item.is_whole else {item.target: [str(s) for s in item.sub_items or ()]}
                for item in self.exclusions
            ],
            "extra_args": sorted(self.extra_args.keys()),
        }


def parse_exclusions(raw: Any, *, path: str = EXCLUDE_KEY) -> tuple[Exclusion, ...]:
    """Parse a flat exclusion list: a target optionally followed by a list of sub-items."""

    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        raise MalformedRequestError(f"{path} must be followed by a list (type={type(raw).__name__})")

    items = list(raw)
    out: list[Exclusion] = []
    idx = 0
    while idx < len(items):
        entry = items[idx]
        if isinstance(entry, Exclusion):
            out.append(entry)
            idx += 1
            continue
        if not isinstance(entry, str) or not entry.strip():
            raise MalformedRequestError(
                f"{path}[{idx}] must be a target name (type={type(entry).__name__}, value={entry!r})"
            )
        following = items[idx + 1] if idx + 1 < len(items) else None
        if isinstance(following, (list, tuple)):
            out.append(Exclusion(target=entry, sub_items=tuple(following)))
            idx += 2
        else:
            out.append(Exclusion(target=entry))
            idx += 1
    return tuple(out)


def parse_request(tokens: Sequence[Any]) -> Request:
    if isinstance(tokens, Request):
        return tokens
    if isinstance(tokens, (str, bytes)) or not isinstance(tokens, Sequence):
        raise MalformedRequestError(
            f"Request must be a list of tokens (type={type(tokens).__name__})"
        )

    items = list(tokens)
    bundle_names: list[str] = []
    exclusions: tuple[Exclusion, ...] | None = None
    extra_args: dict[str, Any] = {}
    in_options = False

    idx = 0
    while idx < len(items):
        token = items[idx]
        if not isinstance(token, str):
            raise MalformedRequestError(
                f"request[{idx}] must be a string (type={type(token).__name__}, value={token!r})"
            )

        if token.startswith(CUSTOM_PREFIX):
            in_options = True
            if token == CUSTOM_PREFIX:
                raise MalformedRequestError(f"request[{idx}] custom key has no name")
            if idx + 1 >= len(items):
                raise MalformedRequestError(f"request[{idx}] custom key {token} has no value")
            if token in extra_args:
                raise MalformedRequestError(f"request[{idx}] duplicate custom key: {token}")
            extra_args[token] = items[idx + 1]
            idx += 2
            continue

        if token.startswith(RESERVED_PREFIX):
            in_options = True
            if token != EXCLUDE_KEY:
                raise MalformedRequestError(f"request[{idx}] unrecognized reserved key: {token}")
            if exclusions is not None:
                raise MalformedRequestError(f"request[{idx}] duplicate reserved key: {token}")
            if idx + 1 >= len(items):
                raise MalformedRequestError(f"request[{idx}] {EXCLUDE_KEY} has no exclusion list")
            exclusions = parse_exclusions(items[idx + 1], path=f"request[{idx + 1}]")
            idx += 2
            continue

        if in_options:
            raise MalformedRequestError(
                f"request[{idx}] bundle name {token!r} appears after options; "
                "bundle names must precede -exclude and custom keys"
            )
        bundle_names.append(_check_bundle_name(token, path=f"request[{idx}]"))
        idx += 1

    return Request(
        bundle_names=tuple(bundle_names),
        exclusions=exclusions or (),
        extra_args=extra_args,
    )
