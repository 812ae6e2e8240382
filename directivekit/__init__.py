"""Reusable directive resolution kernel (directive model + resolver + executor).

This package is intentionally independent of `directive_project.*`. What an
"enable" or "disable" actually does to a target is supplied by the caller
through an action capability object.
"""

from directivekit.declarations import parse_declarations
from directivekit.directive_types import (
    ALLOWED_ACTION_KINDS,
    ALLOWED_POSITIONS,
    ActionKind,
    Bundle,
    Directive,
    Exclusion,
    Position,
)
from directivekit.engine.executor import (
    ActionCapability,
    DefaultDirectiveRecorder,
    DirectiveExecutor,
    DirectiveRecorder,
    ExecutionReport,
    NullDirectiveRecorder,
)
from directivekit.engine.runtime import RuntimeApplier, apply_bundles
from directivekit.errors import (
    ActionError,
    DeclarationError,
    DirectiveError,
    MalformedRequestError,
    UnknownBundleError,
    VersionError,
)
from directivekit.providers import ChainedProvider, DynamicProvider, Provider, StaticProvider
from directivekit.request import Request, parse_request
from directivekit.resolver import ResolvedDirectives, resolve

__all__ = [
    "ALLOWED_ACTION_KINDS",
    "ALLOWED_POSITIONS",
    "ActionCapability",
    "ActionError",
    "ActionKind",
    "Bundle",
    "ChainedProvider",
    "DeclarationError",
    "DefaultDirectiveRecorder",
    "Directive",
    "DirectiveError",
    "DirectiveExecutor",
    "DirectiveRecorder",
    "DynamicProvider",
    "Exclusion",
    "ExecutionReport",
    "MalformedRequestError",
    "NullDirectiveRecorder",
    "Position",
    "Provider",
    "Request",
    "ResolvedDirectives",
    "RuntimeApplier",
    "StaticProvider",
    "UnknownBundleError",
    "VersionError",
    "apply_bundles",
    "parse_declarations",
    "parse_request",
    "resolve",
]
