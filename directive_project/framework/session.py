from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from directivekit.directive_types import Exclusion
from directivekit.engine.executor import DefaultDirectiveRecorder, DirectiveExecutor, ExecutionReport
from directivekit.engine.runtime import RuntimeApplier
from directivekit.request import Request
from directivekit.resolver import ResolvedDirectives, resolve
from directive_project.framework.capabilities import CapabilityRouter
from directive_project.framework.config import DirectiveConfig
from directive_project.framework.context import TargetContext
from directive_project.framework.provider_config import ProviderRegistry


class ContextRecorder(DefaultDirectiveRecorder):
    """Logs like the default recorder and keeps applied records on `TargetContext.applied`."""

    def on_directive_end(self, context: Any, record: dict[str, Any]) -> None:
        if isinstance(context, TargetContext):
            context.applied.append(dict(record))
        super().on_directive_end(context, record)


@dataclass(frozen=True)
class DirectiveSession:
    cfg: DirectiveConfig
    registry: ProviderRegistry
    capability: CapabilityRouter
    logger: logging.Logger

    @classmethod
    def from_config(cls, cfg: DirectiveConfig, *, logger: logging.Logger | None = None) -> "DirectiveSession":
        return cls(
            cfg=cfg,
            registry=ProviderRegistry.from_config(cfg.providers),
            capability=CapabilityRouter(pragmas=cfg.pragmas),
            logger=logger or logging.getLogger("directive_project"),
        )

    def provider_name(self, name: str | None = None) -> str:
        selected = name or self.cfg.default_provider
        if not selected:
            available = ", ".join(self.registry.available()) or "<none>"
            raise ValueError(f"No provider selected and no default_provider configured (available: {available})")
        return selected

    def new_context(self, name: str) -> TargetContext:
        return TargetContext(name=name, logger=self.logger)

    def executor(self) -> DirectiveExecutor:
        return DirectiveExecutor(self.capability, recorder=ContextRecorder())

    def applier(self, provider: str | None = None) -> RuntimeApplier:
        return RuntimeApplier(self.registry.get(self.provider_name(provider)), self.executor())

    def resolve(self, request: Request | Sequence[Any], *, provider: str | None = None) -> ResolvedDirectives:
        name = self.provider_name(provider)
        resolved = resolve(self.registry.get(name), request)
        self.logger.info(
            "Resolved %d directives from provider %s (bundles=%s)",
            len(resolved),
            name,
            ", ".join(resolved.request.bundle_names) or "<none>",
        )
        return resolved

    def apply(
        self,
        request: Request | Sequence[Any],
        context: TargetContext,
        *,
        provider: str | None = None,
    ) -> ExecutionReport:
        resolved = self.resolve(request, provider=provider)
        return self.executor().execute(resolved, context)

    def apply_bundles(
        self,
        bundle_names: Sequence[str],
        extra_args: Mapping[str, Any] | None,
        context: TargetContext,
        *,
        provider: str | None = None,
        exclusions: Sequence[Exclusion] = (),
    ) -> ExecutionReport:
        return self.applier(provider).apply_bundles(
            bundle_names, extra_args, context, exclusions=exclusions
        )
