from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Literal, Mapping, Sequence, TypeAlias

ActionKind = Literal["enable", "disable", "verify", "generate"]
Position = Literal["front", "normal", "back"]

ALLOWED_ACTION_KINDS: tuple[str, ...] = ("enable", "disable", "verify", "generate")
ALLOWED_POSITIONS: tuple[str, ...] = ("front", "normal", "back")

# Prefix reserved for engine keys (`-exclude`) and custom keys (`--name`).
RESERVED_PREFIX = "-"

Generator: TypeAlias = Callable[[tuple[str, ...], Mapping[str, Any], Any], Sequence[Any]]


def _callable_label(fn: Any) -> str:
    module = getattr(fn, "__module__", None) or "<unknown_module>"
    qualname = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or "<callable>"
    return f"&{module}.{qualname}"


@dataclass(frozen=True)
class Directive:
    target: str
    action_kind: ActionKind = "enable"
    args: tuple[Any, ...] = ()
    position: Position = "normal"
    min_version: str | None = None
    generator: Generator | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        if self.action_kind not in ALLOWED_ACTION_KINDS:
            raise ValueError(
                f"Directive.action_kind must be one of: {', '.join(ALLOWED_ACTION_KINDS)} "
                f"(got {self.action_kind!r})"
            )
        if self.position not in ALLOWED_POSITIONS:
            raise ValueError(
                f"Directive.position must be one of: {', '.join(ALLOWED_POSITIONS)} "
                f"(got {self.position!r})"
            )

        if self.generator is not None or self.action_kind == "generate":
            if self.action_kind != "generate":
                raise ValueError("Directive.generator requires action_kind='generate'")
            if not callable(self.generator):
                raise TypeError(
                    f"Directive.generator must be callable (type={type(self.generator).__name__})"
                )
            if self.args or self.min_version is not None:
                raise ValueError("Generator directives cannot carry args or min_version")
            if self.position != "normal":
                raise ValueError("Generator directives cannot use forced positions")
            if not self.target:
                object.__setattr__(self, "target", _callable_label(self.generator))

        if not isinstance(self.target, str) or not self.target.strip():
            raise TypeError("Directive.target must be a non-empty string")
        object.__setattr__(self, "target", self.target.strip())

        if isinstance(self.args, (str, bytes)) or not isinstance(self.args, (list, tuple)):
            raise TypeError(f"Directive.args must be a sequence (type={type(self.args).__name__})")
        object.__setattr__(self, "args", tuple(self.args))

        if self.action_kind == "verify":
            if self.min_version is None or not str(self.min_version).strip():
                raise ValueError(f"Directive {self.target} verify requires min_version")
            if self.args:
                raise ValueError(f"Directive {self.target} verify cannot carry args")
            object.__setattr__(self, "min_version", str(self.min_version).strip())
        elif self.min_version is not None:
            raise ValueError(
                f"Directive {self.target} min_version is only allowed with action_kind='verify'"
            )

        if self.source is not None and (not isinstance(self.source, str) or not self.source.strip()):
            raise TypeError("Directive.source must be a non-empty string or None")

    @classmethod
    def from_generator(cls, fn: Generator, *, source: str | None = None) -> "Directive":
        return cls(target="", action_kind="generate", generator=fn, source=source)

    @property
    def is_generator(self) -> bool:
        return self.action_kind == "generate"

    @property
    def label(self) -> str:
        marker = {"front": "<", "normal": "", "back": ">"}[self.position]
        if self.action_kind == "disable":
            marker += "-"
        text = f"{marker}{self.target}"
        if self.action_kind == "verify":
            return f"{text}>={self.min_version}"
        if self.args:
            return f"{text}:[{','.join(str(arg) for arg in self.args)}]"
        return text

    def without_args(self, items: Sequence[Any]) -> "Directive":
        drop = list(items)
        kept = tuple(arg for arg in self.args if arg not in drop)
        if kept == self.args:
            return self
        return replace(self, args=kept)

    def describe(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "target": self.target,
            "action": self.action_kind,
            "position": self.position,
        }
        if self.args:
            row["args"] = [str(arg) for arg in self.args]
        if self.min_version is not None:
            row["min_version"] = self.min_version
        if self.source:
            row["source"] = self.source
        return row


@dataclass(frozen=True)
class Bundle:
    name: str
    directives: tuple[Directive, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise TypeError("Bundle.name must be a non-empty string")
        name = self.name.strip()
        if name.startswith(RESERVED_PREFIX):
            raise ValueError(f"Bundle.name cannot start with {RESERVED_PREFIX!r}: {name}")
        object.__setattr__(self, "name", name)

        directives = tuple(self.directives)
        for idx, item in enumerate(directives):
            if not isinstance(item, Directive):
                raise TypeError(
                    f"Bundle {name} directives[{idx}] must be a Directive (type={type(item).__name__})"
                )
        object.__setattr__(self, "directives", directives)


@dataclass(frozen=True)
class Exclusion:
    target: str
    sub_items: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.target, str) or not self.target.strip():
            raise TypeError("Exclusion.target must be a non-empty string")
        object.__setattr__(self, "target", self.target.strip())
        if self.sub_items is not None:
            if isinstance(self.sub_items, (str, bytes)) or not isinstance(
                self.sub_items, (list, tuple)
            ):
                raise TypeError(
                    f"Exclusion.sub_items must be a sequence or None (type={type(self.sub_items).__name__})"
                )
            object.__setattr__(self, "sub_items", tuple(self.sub_items))

    @property
    def is_whole(self) -> bool:
        return self.sub_items is None

    def matches(self, directive: Directive) -> bool:
        return not directive.is_generator and directive.target == self.target
