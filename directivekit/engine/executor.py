"""Execution of resolved directive sequences.

This module is intentionally app-agnostic and must not import `directive_project.*`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from directivekit.declarations import parse_declarations
from directivekit.directive_types import Directive
from directivekit.errors import ActionError, DeclarationError, DirectiveError, VersionError
from directivekit.resolver import ResolvedDirectives

logger = logging.getLogger(__name__)


def utc_now_iso8601() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class ActionCapability(Protocol):
    def apply(self, target: str, action_kind: str, args: tuple[Any, ...], context: Any) -> None:
        ...

    def check_version(self, target: str, min_version: str) -> None:
        ...


class DirectiveRecorder(Protocol):
    def on_directive_start(self, context: Any, path: str, directive: Directive) -> None:
        ...

    def on_directive_end(self, context: Any, record: dict[str, Any]) -> None:
        ...

    def on_directive_error(
        self, context: Any, path: str, directive: Directive, exc: Exception
    ) -> None:
        ...


class DefaultDirectiveRecorder:
    def __init__(self, log: logging.Logger | None = None):
        self._logger = log

    def _log(self, context: Any) -> logging.Logger:
        if self._logger is not None:
            return self._logger
        ctx_logger = getattr(context, "logger", None)
        if isinstance(ctx_logger, logging.Logger):
            return ctx_logger
        return logger

    def on_directive_start(self, context: Any, path: str, directive: Directive) -> None:
        tokens = [f"action={directive.action_kind}", f"position={directive.position}"]
        if directive.source:
            tokens.append(f"source={directive.source}")
        self._log(context).info("Directive: %s (%s)", path, ", ".join(tokens))

    def on_directive_end(self, context: Any, record: dict[str, Any]) -> None:
        path = record.get("path", "<unknown>")
        if record.get("type") == "generate":
            self._log(context).info(
                "Expanded generator %s (children=%d)", path, int(record.get("children", 0) or 0)
            )
            return
        self._log(context).debug("Completed directive %s", path)

    def on_directive_error(
        self, context: Any, path: str, directive: Directive, exc: Exception
    ) -> None:
        self._log(context).error("Directive failed: %s (%s)", path, exc)


class NullDirectiveRecorder:
    def on_directive_start(self, context: Any, path: str, directive: Directive) -> None:
        return

    def on_directive_end(self, context: Any, record: dict[str, Any]) -> None:
        return

    def on_directive_error(
        self, context: Any, path: str, directive: Directive, exc: Exception
    ) -> None:
        return


@dataclass(frozen=True)
class ExecutionReport:
    records: tuple[dict[str, Any], ...]

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(str(record.get("path")) for record in self.records)

    @property
    def applied(self) -> tuple[dict[str, Any], ...]:
        return tuple(record for record in self.records if record.get("type") != "generate")


class DirectiveExecutor:
    def __init__(self, capability: ActionCapability, *, recorder: DirectiveRecorder | None = None):
        self._validate_capability(capability)
        self._capability = capability
        self._recorder = recorder or DefaultDirectiveRecorder()
        self._validate_recorder(self._recorder)

    @property
    def capability(self) -> ActionCapability:
        return self._capability

    def execute(self, resolved: ResolvedDirectives, context: Any) -> ExecutionReport:
        if not isinstance(resolved, ResolvedDirectives):
            raise TypeError(
                f"execute() expects ResolvedDirectives (type={type(resolved).__name__})"
            )
        records: list[dict[str, Any]] = []
        self._execute_sequence(
            resolved.directives,
            context,
            bundle_names=resolved.request.bundle_names,
            extra_args=resolved.request.extra_args,
            path_segments=[],
            records=records,
        )
        return ExecutionReport(records=tuple(records))

    def _validate_capability(self, capability: ActionCapability) -> None:
        for name in ("apply", "check_version"):
            method = getattr(capability, name, None)
            if method is None or not callable(method):
                raise TypeError(f"Action capability missing required method: {name}")

    def _validate_recorder(self, recorder: DirectiveRecorder) -> None:
        required = ("on_directive_start", "on_directive_end", "on_directive_error")
        for name in required:
            method = getattr(recorder, name, None)
            if method is None or not callable(method):
                raise TypeError(f"Directive recorder missing required method: {name}")

    def _segment(self, directive: Directive, *, index: int) -> str:
        return f"{index + 1:02d}:{directive.target}"

    def _execute_sequence(
        self,
        directives: Sequence[Directive],
        context: Any,
        *,
        bundle_names: tuple[str, ...],
        extra_args: Mapping[str, Any],
        path_segments: list[str],
        records: list[dict[str, Any]],
    ) -> None:
        for index, directive in enumerate(directives):
            segments = [*path_segments, self._segment(directive, index=index)]
            self._execute_directive(
                directive,
                context,
                bundle_names=bundle_names,
                extra_args=extra_args,
                path_segments=segments,
                records=records,
            )

    def _execute_directive(
        self,
        directive: Directive,
        context: Any,
        *,
        bundle_names: tuple[str, ...],
        extra_args: Mapping[str, Any],
        path_segments: list[str],
        records: list[dict[str, Any]],
    ) -> None:
        path = "/".join(path_segments)
        self._recorder.on_directive_start(context, path, directive)
        try:
            if directive.is_generator:
                children = self._expand_generator(directive, context, bundle_names, extra_args)
                record = self._record(directive, path, children=len(children))
                records.append(record)
                self._recorder.on_directive_end(context, record)
                # Children run before the next top-level directive, without exclusions or ordering.
                self._execute_sequence(
                    children,
                    context,
                    bundle_names=bundle_names,
                    extra_args=extra_args,
                    path_segments=path_segments,
                    records=records,
                )
                return

            if directive.action_kind == "verify":
                self._check_version(directive)
            else:
                self._apply(directive, context)

            record = self._record(directive, path)
            records.append(record)
            self._recorder.on_directive_end(context, record)
        except DirectiveError as exc:
            if exc.directive_path is None:
                try:
                    self._recorder.on_directive_error(context, path, directive, exc)
                except Exception:
                    logger.exception("Directive recorder failed during error handling for %s", path)
                exc.directive_path = path
                exc.directive = directive
                exc.applied = tuple(records)
            raise

    def _expand_generator(
        self,
        directive: Directive,
        context: Any,
        bundle_names: tuple[str, ...],
        extra_args: Mapping[str, Any],
    ) -> tuple[Directive, ...]:
        generator = directive.generator
        assert generator is not None
        try:
            produced = generator(bundle_names, extra_args, context)
        except DirectiveError:
            raise
        except Exception as exc:
            raise ActionError(
                f"Generator {directive.target} failed: {exc}",
                target=directive.target,
                action_kind="generate",
            ) from exc

        if produced is None:
            return ()
        try:
            return parse_declarations(produced, source=directive.target)
        except DeclarationError as exc:
            raise ActionError(
                f"Generator {directive.target} returned invalid directives: {exc}",
                target=directive.target,
                action_kind="generate",
            ) from exc

    def _check_version(self, directive: Directive) -> None:
        assert directive.min_version is not None
        try:
            self._capability.check_version(directive.target, directive.min_version)
        except VersionError:
            raise
        except Exception as exc:
            raise VersionError(
                f"Version check failed for {directive.target} >= {directive.min_version}: {exc}",
                target=directive.target,
                min_version=directive.min_version,
            ) from exc

    def _apply(self, directive: Directive, context: Any) -> None:
        try:
            self._capability.apply(directive.target, directive.action_kind, directive.args, context)
        except ActionError:
            raise
        except Exception as exc:
            raise ActionError(
                f"Failed to {directive.action_kind} {directive.target}: {exc}",
                target=directive.target,
                action_kind=directive.action_kind,
            ) from exc

    def _record(self, directive: Directive, path: str, **extra: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "type": directive.action_kind,
            "target": directive.target,
            "path": path,
            "created_at": utc_now_iso8601(),
        }
        if directive.args:
            record["args"] = list(directive.args)
        if directive.min_version is not None:
            record["min_version"] = directive.min_version
        if directive.source:
            record["source"] = directive.source
        record.update(extra)
        return record
