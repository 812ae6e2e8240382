"""Engine primitives for executing resolved directive sequences."""

from directivekit.engine.executor import (
    ActionCapability,
    DefaultDirectiveRecorder,
    DirectiveExecutor,
    DirectiveRecorder,
    ExecutionReport,
    NullDirectiveRecorder,
    utc_now_iso8601,
)
from directivekit.engine.runtime import RuntimeApplier, apply_bundles, build_request

__all__ = [
    "ActionCapability",
    "DefaultDirectiveRecorder",
    "DirectiveExecutor",
    "DirectiveRecorder",
    "ExecutionReport",
    "NullDirectiveRecorder",
    "RuntimeApplier",
    "apply_bundles",
    "build_request",
    "utc_now_iso8601",
]
