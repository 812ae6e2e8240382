"""Error taxonomy for `directivekit`.

Every error is raised synchronously to the direct caller of `resolve`,
`DirectiveExecutor.execute` or `apply_bundles`. Nothing here is retried or
rolled back by the engine.
"""

from __future__ import annotations

from typing import Any


class DirectiveError(Exception):
    """Base class for all engine errors."""

    directive_path: str | None = None
    directive: Any = None
    applied: tuple[dict[str, Any], ...] = ()


class DeclarationError(DirectiveError, ValueError):
    """An authored directive declaration could not be parsed."""


class MalformedRequestError(DirectiveError, ValueError):
    """The request violates bundles-before-options or uses an unknown reserved key."""


class UnknownBundleError(DirectiveError, ValueError):
    def __init__(
        self,
        bundle: str,
        *,
        available: tuple[str, ...] = (),
        suggestions: tuple[str, ...] = (),
    ) -> None:
        self.bundle = bundle
        self.available = tuple(available)
        self.suggestions = tuple(suggestions)
        listing = ", ".join(self.available) or "<none>"
        hint = f" (did you mean: {', '.join(self.suggestions)})" if self.suggestions else ""
        super().__init__(f"Unknown bundle: {bundle} (available: {listing}){hint}")


class VersionError(DirectiveError):
    def __init__(
        self,
        message: str,
        *,
        target: str | None = None,
        min_version: str | None = None,
        found: str | None = None,
    ) -> None:
        super().__init__(message)
        self.target = target
        self.min_version = min_version
        self.found = found


class ActionError(DirectiveError):
    def __init__(
        self,
        message: str,
        *,
        target: str | None = None,
        action_kind: str | None = None,
    ) -> None:
        super().__init__(message)
        self.target = target
        self.action_kind = action_kind
