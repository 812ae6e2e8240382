from __future__ import annotations

"""Directive resolution.

`resolve` is pure: it consults the provider, partitions the result by forced
position and applies request exclusions. It never touches a target context.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from directivekit.directive_types import Directive, Exclusion
from directivekit.providers import Provider
from directivekit.request import Request, parse_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedDirectives:
    directives: tuple[Directive, ...]
    request: Request
    metadata: dict[str, Any]

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(directive.label for directive in self.directives)

    def __iter__(self):
        return iter(self.directives)

    def __len__(self) -> int:
        return len(self.directives)


def order_by_position(directives: Sequence[Directive]) -> tuple[Directive, ...]:
    """Stable partition into front ++ normal ++ back."""

    front: list[Directive] = []
    normal: list[Directive] = []
    back: list[Directive] = []
    for directive in directives:
        if directive.position == "front":
            front.append(directive)
        elif directive.position == "back":
            back.append(directive)
        else:
            normal.append(directive)
    return (*front, *normal, *back)


def apply_exclusions(
    directives: Sequence[Directive], exclusions: Sequence[Exclusion]
) -> tuple[tuple[Directive, ...], int]:
    """Drop whole-target exclusions and narrow args for sub-item exclusions.

    A directive whose args all get excluded is kept with empty args.
    Returns (kept, dropped_count).
    """

    if not exclusions:
        return tuple(directives), 0

    kept: list[Directive] = []
    dropped = 0
    for directive in directives:
        current: Directive | None = directive
        for exclusion in exclusions:
            if current is None or not exclusion.matches(current):
                continue
            if exclusion.is_whole:
                current = None
            else:
                current = current.without_args(exclusion.sub_items or ())
        if current is None:
            dropped += 1
            continue
        kept.append(current)
    return tuple(kept), dropped


def resolve(provider: Provider, request: Request | Sequence[Any]) -> ResolvedDirectives:
    parsed = parse_request(request)

    base = provider.resolve_base(parsed.bundle_names, parsed.extra_args)
    for idx, item in enumerate(base):
        if not isinstance(item, Directive):
            raise TypeError(
                f"Provider returned a non-Directive at index {idx} (type={type(item).__name__})"
            )

    ordered = order_by_position(base)
    final, dropped = apply_exclusions(ordered, parsed.exclusions)

    metadata: dict[str, Any] = {
        "bundles": list(parsed.bundle_names),
        "exclude": [item.target for item in parsed.exclusions],
        "base_count": len(base),
        "dropped": dropped,
        "resolved": [directive.label for directive in final],
    }
    logger.debug(
        "Resolved %d directive(s) for bundles=%s (dropped=%d)",
        len(final),
        ", ".join(parsed.bundle_names) or "<none>",
        dropped,
    )
    return ResolvedDirectives(directives=final, request=parsed, metadata=metadata)
