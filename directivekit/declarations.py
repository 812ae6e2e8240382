"""Directive declaration grammar.

Authored declarations are flat lists, read left to right:

- `"strict"`                      enable `strict`
- `"-warnings"`                   disable `warnings`
- `"<strict"` / `">-warnings"`    forced front / forced back
- `"exporter", ["foo", "bar"]`    a string followed by a list carries args
- `{"packaging": "21.0"}`         verify the version, then enable (optionally
                                  followed by a list of args for the enable)
- `some_callable`                 generator, expanded at execution time
- `Directive(...)`                passed through unchanged
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from directivekit.directive_types import Directive, Position
from directivekit.errors import DeclarationError

FRONT_MARKER = "<"
BACK_MARKER = ">"
DISABLE_MARKER = "-"


def parse_marked_target(raw: str, *, path: str) -> tuple[str, Position, bool]:
    """Split a declared string into (target, position, disable)."""

    if not isinstance(raw, str):
        raise DeclarationError(f"{path} must be a string (type={type(raw).__name__})")
    text = raw.strip()

    position: Position = "normal"
    if text.startswith(FRONT_MARKER):
        position = "front"
        text = text[1:]
    elif text.startswith(BACK_MARKER):
        position = "back"
        text = text[1:]

    disable = False
    if text.startswith(DISABLE_MARKER):
        disable = True
        text = text[1:]

    target = text.strip()
    if not target:
        raise DeclarationError(f"{path} has no target identifier: {raw!r}")
    if target[0] in (FRONT_MARKER, BACK_MARKER, DISABLE_MARKER):
        raise DeclarationError(f"{path} has misplaced markers: {raw!r}")
    return target, position, disable


def _is_arg_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def parse_declarations(entries: Sequence[Any], *, source: str | None = None) -> tuple[Directive, ...]:
    if isinstance(entries, (str, bytes)) or not isinstance(entries, Sequence):
        raise DeclarationError(
            f"{source or 'declarations'} must be a list (type={type(entries).__name__})"
        )

    label = source or "declarations"
    items = list(entries)
    directives: list[Directive] = []
    idx = 0
    while idx < len(items):
        entry = items[idx]
        path = f"{label}[{idx}]"
        following = items[idx + 1] if idx + 1 < len(items) else None
        has_args = _is_arg_list(following)

        if isinstance(entry, Directive):
            directives.append(entry)
            idx += 1
            continue

        if isinstance(entry, str):
            target, position, disable = parse_marked_target(entry, path=path)
            try:
                directives.append(
                    Directive(
                        target=target,
                        action_kind="disable" if disable else "enable",
                        args=tuple(following) if has_args else (),
                        position=position,
                        source=source,
                    )
                )
            except (TypeError, ValueError) as exc:
                raise DeclarationError(f"{path}: {exc}") from exc
            idx += 2 if has_args else 1
            continue

        if isinstance(entry, Mapping):
            if len(entry) != 1:
                raise DeclarationError(
                    f"{path} version mapping must have exactly one key (got {len(entry)})"
                )
            ((raw_target, min_version),) = entry.items()
            target, position, disable = parse_marked_target(raw_target, path=path)
            if min_version is None or isinstance(min_version, bool) or not str(min_version).strip():
                raise DeclarationError(f"{path} {target} has an empty minimum version")
            try:
                directives.append(
                    Directive(
                        target=target,
                        action_kind="verify",
                        position=position,
                        min_version=str(min_version),
                        source=source,
                    )
                )
                directives.append(
                    Directive(
                        target=target,
                        action_kind="disable" if disable else "enable",
                        args=tuple(following) if has_args else (),
                        position=position,
                        source=source,
                    )
                )
            except (TypeError, ValueError) as exc:
                raise DeclarationError(f"{path}: {exc}") from exc
            idx += 2 if has_args else 1
            continue

        if callable(entry):
            directives.append(Directive.from_generator(entry, source=source))
            idx += 1
            continue

        if _is_arg_list(entry):
            raise DeclarationError(f"{path} argument list is not preceded by a target")

        raise DeclarationError(
            f"{path} unsupported declaration entry (type={type(entry).__name__}, value={entry!r})"
        )

    return tuple(directives)
