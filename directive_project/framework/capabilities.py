from __future__ import annotations

"""Action capabilities for `TargetContext`.

Two kinds of targets exist:

- pragmas: named switches kept in `TargetContext.pragmas` (strict, warnings,
  feature, ...). Enabling without args turns the switch on; with args it adds
  items. Disabling without args turns it off; with args it suppresses items.
- modules: anything else. Enabling imports the module and binds it (or the
  named attributes) into `TargetContext.namespace`; disabling removes them.

Version checks compare installed distributions (or `python` itself) using
`packaging.version`.
"""

import importlib
import importlib.metadata
import logging
import platform
from collections.abc import Iterable
from typing import Any

from packaging.version import InvalidVersion, Version

from directivekit.errors import ActionError, VersionError
from directive_project.framework.context import TargetContext

logger = logging.getLogger(__name__)

DEFAULT_PRAGMAS: tuple[str, ...] = ("strict", "warnings", "feature", "utf8")


def _require_context(context: Any, *, target: str, action_kind: str) -> TargetContext:
    if not isinstance(context, TargetContext):
        raise ActionError(
            f"Cannot {action_kind} {target}: context must be a TargetContext "
            f"(type={type(context).__name__})",
            target=target,
            action_kind=action_kind,
        )
    return context


def _parse_version(raw: str, *, target: str, min_version: str, label: str) -> Version:
    try:
        return Version(str(raw))
    except InvalidVersion as exc:
        raise VersionError(
            f"Invalid {label} version for {target}: {raw!r}",
            target=target,
            min_version=min_version,
            found=str(raw) if label == "installed" else None,
        ) from exc


def installed_version(target: str) -> str | None:
    if target == "python":
        return platform.python_version()
    try:
        return importlib.metadata.version(target)
    except importlib.metadata.PackageNotFoundError:
        pass
    try:
        module = importlib.import_module(target)
    except ImportError:
        return None
    version = getattr(module, "__version__", None)
    return str(version) if version is not None else None


def check_installed_version(target: str, min_version: str) -> str:
    required = _parse_version(min_version, target=target, min_version=min_version, label="required")
    found = installed_version(target)
    if found is None:
        raise VersionError(
            f"{target} >= {min_version} required but {target} is not installed",
            target=target,
            min_version=min_version,
        )
    current = _parse_version(found, target=target, min_version=min_version, label="installed")
    if current < required:
        raise VersionError(
            f"{target} >= {min_version} required but {found} is installed",
            target=target,
            min_version=min_version,
            found=found,
        )
    return found


class PragmaCapability:
    def apply(self, target: str, action_kind: str, args: tuple[Any, ...], context: Any) -> None:
        ctx = _require_context(context, target=target, action_kind=action_kind)
        state = ctx.pragma(target)
        items = {str(arg) for arg in args}

        if action_kind == "enable":
            if items:
                state.items.update(items)
                state.suppressed.difference_update(items)
            else:
                state.enabled = True
                state.suppressed.clear()
            return

        if action_kind == "disable":
            if items:
                state.suppressed.update(items)
                state.items.difference_update(items)
            else:
                state.enabled = False
                state.items.clear()
            return

        raise ActionError(
            f"Unsupported action for pragma {target}: {action_kind}",
            target=target,
            action_kind=action_kind,
        )

    def check_version(self, target: str, min_version: str) -> None:
        check_installed_version(target, min_version)


class ModuleCapability:
    def _import(self, target: str, action_kind: str) -> Any:
        try:
            return importlib.import_module(target)
        except ImportError as exc:
            raise ActionError(
                f"Cannot {action_kind} {target}: {exc}", target=target, action_kind=action_kind
            ) from exc

    def apply(self, target: str, action_kind: str, args: tuple[Any, ...], context: Any) -> None:
        ctx = _require_context(context, target=target, action_kind=action_kind)
        alias = target.rsplit(".", 1)[-1]

        if action_kind == "enable":
            module = self._import(target, action_kind)
            if not args:
                ctx.namespace[alias] = module
                return
            for name in args:
                key = str(name)
                if not hasattr(module, key):
                    raise ActionError(
                        f"{target} has no attribute {key!r}", target=target, action_kind=action_kind
                    )
                ctx.namespace[key] = getattr(module, key)
            return

        if action_kind == "disable":
            names: Iterable[str] = [str(name) for name in args] if args else [alias]
            for key in names:
                ctx.namespace.pop(key, None)
            return

        raise ActionError(
            f"Unsupported action for module {target}: {action_kind}",
            target=target,
            action_kind=action_kind,
        )

    def check_version(self, target: str, min_version: str) -> None:
        check_installed_version(target, min_version)


class CapabilityRouter:
    """Dispatch pragma targets to `PragmaCapability`, everything else to `ModuleCapability`."""

    def __init__(
        self,
        *,
        pragmas: Iterable[str] = DEFAULT_PRAGMAS,
        pragma_capability: PragmaCapability | None = None,
        module_capability: ModuleCapability | None = None,
    ):
        normalized: list[str] = []
        for raw in pragmas:
            if not isinstance(raw, str) or not raw.strip():
                raise TypeError("Pragma names must be non-empty strings")
            normalized.append(raw.strip())
        self._pragmas = frozenset(normalized)
        self._pragma_capability = pragma_capability or PragmaCapability()
        self._module_capability = module_capability or ModuleCapability()

    @property
    def pragmas(self) -> tuple[str, ...]:
        return tuple(sorted(self._pragmas))

    def apply(self, target: str, action_kind: str, args: tuple[Any, ...], context: Any) -> None:
        if target in self._pragmas:
            self._pragma_capability.apply(target, action_kind, args, context)
        else:
            self._module_capability.apply(target, action_kind, args, context)
        logger.debug("Applied %s %s args=%s", action_kind, target, list(args))

    def check_version(self, target: str, min_version: str) -> None:
        found = check_installed_version(target, min_version)
        logger.debug("Version ok: %s %s >= %s", target, found, min_version)
