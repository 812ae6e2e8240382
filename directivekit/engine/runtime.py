"""Re-entrant resolve + execute entry point.

Used after a context has already been set up, for effects that must observe
what earlier batches applied. Ordering (front/normal/back) holds within one
call only; batches are never merged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from directivekit.directive_types import Exclusion
from directivekit.engine.executor import (
    ActionCapability,
    DirectiveExecutor,
    DirectiveRecorder,
    ExecutionReport,
)
from directivekit.providers import Provider
from directivekit.request import Request
from directivekit.resolver import ResolvedDirectives, resolve

logger = logging.getLogger(__name__)


def build_request(
    bundle_names: Sequence[str],
    extra_args: Mapping[str, Any] | None = None,
    *,
    exclusions: Sequence[Exclusion] = (),
) -> Request:
    if isinstance(bundle_names, str):
        bundle_names = (bundle_names,)
    return Request(
        bundle_names=tuple(bundle_names),
        exclusions=tuple(exclusions),
        extra_args=dict(extra_args or {}),
    )


class RuntimeApplier:
    def __init__(self, provider: Provider, executor: DirectiveExecutor):
        if not callable(getattr(provider, "resolve_base", None)):
            raise TypeError(
                f"RuntimeApplier provider must provide resolve_base (type={type(provider).__name__})"
            )
        if not isinstance(executor, DirectiveExecutor):
            raise TypeError(
                f"RuntimeApplier executor must be a DirectiveExecutor (type={type(executor).__name__})"
            )
        self._provider = provider
        self._executor = executor

    @property
    def provider(self) -> Provider:
        return self._provider

    def resolve(
        self,
        bundle_names: Sequence[str],
        extra_args: Mapping[str, Any] | None = None,
        *,
        exclusions: Sequence[Exclusion] = (),
    ) -> ResolvedDirectives:
        request = build_request(bundle_names, extra_args, exclusions=exclusions)
        return resolve(self._provider, request)

    def apply_bundles(
        self,
        bundle_names: Sequence[str],
        extra_args: Mapping[str, Any] | None,
        context: Any,
        *,
        exclusions: Sequence[Exclusion] = (),
    ) -> ExecutionReport:
        resolved = self.resolve(bundle_names, extra_args, exclusions=exclusions)
        logger.info(
            "Runtime apply: bundles=%s directives=%d",
            ", ".join(resolved.request.bundle_names) or "<none>",
            len(resolved),
        )
        return self._executor.execute(resolved, context)


def apply_bundles(
    provider: Provider,
    bundle_names: Sequence[str],
    extra_args: Mapping[str, Any] | None,
    context: Any,
    *,
    capability: ActionCapability,
    recorder: DirectiveRecorder | None = None,
    exclusions: Sequence[Exclusion] = (),
) -> ExecutionReport:
    executor = DirectiveExecutor(capability, recorder=recorder)
    return RuntimeApplier(provider, executor).apply_bundles(
        bundle_names, extra_args, context, exclusions=exclusions
    )
