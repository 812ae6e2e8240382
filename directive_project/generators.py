"""Stock generators and dynamic provider functions referenced from config/config.yaml."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from directivekit.directive_types import Directive
from directivekit.providers import Provider, unknown_bundle

MODULES_KEY = "--modules"


def requested_modules(
    bundle_names: tuple[str, ...], extra_args: Mapping[str, Any], context: Any
) -> list[Any]:
    """Enable every module listed under the `--modules` request key."""

    raw = extra_args.get(MODULES_KEY)
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, Sequence):
        raise TypeError(f"{MODULES_KEY} must be a module name or a list of names (type={type(raw).__name__})")
    return [str(name) for name in raw]


def _version_bundle(name: str) -> str | None:
    if not name.startswith("v"):
        return None
    parts = name[1:].split(".")
    if len(parts) < 2 or not all(part.isdigit() for part in parts):
        return None
    return ".".join(parts)


def version_bundles(
    bundle_names: tuple[str, ...], extra_args: Mapping[str, Any], parent: Provider | None
) -> list[Any]:
    """Bundles named like `v3.10` require that Python and switch on the feature pragma.

    Any other bundle name is delegated to `parent`. When a parent exists it is
    always consulted, so its always-list leads the result even for a request
    that names only version bundles.
    """

    versions: list[str] = []
    delegated: list[str] = []
    for name in bundle_names:
        version = _version_bundle(name)
        if version is None:
            delegated.append(name)
        else:
            versions.append(version)

    out: list[Any] = []
    if parent is None:
        if delegated:
            raise unknown_bundle(delegated[0], ())
    else:
        out.extend(parent.resolve_base(tuple(delegated), extra_args))
    for version in versions:
        out.extend(
            [
                Directive(target="python", action_kind="verify", min_version=version),
                "feature",
                [f"v{version}"],
            ]
        )
    return out
