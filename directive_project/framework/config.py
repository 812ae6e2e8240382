from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from directive_project.foundation.logging_utils import parse_log_level
from directive_project.framework.capabilities import DEFAULT_PRAGMAS


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive, surrounding whitespace ignored).
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
        raise ValueError(f"Invalid boolean for {path}: {value!r}")

    raise ValueError(f"Invalid boolean for {path}: {value!r}")


@dataclass(frozen=True)
class LoggingConfig:
    level: str | int = "INFO"
    log_path: str | None = None


@dataclass(frozen=True)
class DirectiveConfig:
    logging: LoggingConfig
    pragmas: tuple[str, ...]
    providers: Mapping[str, Any]
    default_provider: str | None

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> tuple["DirectiveConfig", list[str]]:
        """
        Parse and validate configuration, returning (DirectiveConfig, warnings).

        Provider bodies are kept opaque here; `ProviderRegistry.from_config`
        owns their schema.

        Raises:
            ValueError: if required keys are missing or invalid.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        warnings: list[str] = []

        strict_unknown_keys = False
        if "strict" in cfg:
            strict_unknown_keys = parse_bool(cfg.get("strict"), "strict")

        schema: Mapping[str, Any] = {
            "strict": None,
            "logging": {"level": None, "log_path": None},
            "capabilities": {"pragmas": None},
            "providers": None,
            "default_provider": None,
        }

        unknown: list[str] = []
        for key, value in cfg.items():
            subschema = schema.get(key, KeyError)
            if subschema is KeyError:
                unknown.append(str(key))
                continue
            if isinstance(subschema, Mapping) and isinstance(value, Mapping):
                unknown.extend(f"{key}.{child}" for child in value if child not in subschema)
        if unknown:
            message = f"Unknown config keys: {', '.join(sorted(unknown))}"
            if strict_unknown_keys:
                raise ValueError(message)
            warnings.append(message)

        raw_logging = cfg.get("logging") or {}
        if not isinstance(raw_logging, Mapping):
            raise ValueError("Invalid config type for logging: expected mapping")
        level = raw_logging.get("level", "INFO")
        parse_log_level(level)
        log_path = raw_logging.get("log_path")
        if log_path is not None and (not isinstance(log_path, str) or not log_path.strip()):
            raise ValueError("logging.log_path must be a non-empty string or null")

        raw_capabilities = cfg.get("capabilities") or {}
        if not isinstance(raw_capabilities, Mapping):
            raise ValueError("Invalid config type for capabilities: expected mapping")
        raw_pragmas = raw_capabilities.get("pragmas")
        if raw_pragmas is None:
            pragmas = DEFAULT_PRAGMAS
        else:
            if not isinstance(raw_pragmas, (list, tuple)):
                raise ValueError("capabilities.pragmas must be a list of strings")
            items: list[str] = []
            for idx, item in enumerate(raw_pragmas):
                if not isinstance(item, str) or not item.strip():
                    raise ValueError(f"capabilities.pragmas[{idx}] must be a non-empty string")
                items.append(item.strip())
            pragmas = tuple(items)

        raw_providers = cfg.get("providers") or {}
        if not isinstance(raw_providers, Mapping):
            raise ValueError("Invalid config type for providers: expected mapping")

        default_provider = cfg.get("default_provider")
        if default_provider is not None:
            if not isinstance(default_provider, str) or not default_provider.strip():
                raise ValueError("default_provider must be a non-empty string or null")
            default_provider = default_provider.strip()
            if default_provider not in raw_providers:
                raise ValueError(
                    f"default_provider={default_provider} is not defined under providers "
                    f"(available: {', '.join(sorted(map(str, raw_providers))) or '<none>'})"
                )
        elif len(raw_providers) == 1:
            (only,) = raw_providers.keys()
            default_provider = str(only)

        return (
            DirectiveConfig(
                logging=LoggingConfig(
                    level=level.strip().upper() if isinstance(level, str) else level,
                    log_path=log_path.strip() if isinstance(log_path, str) else None,
                ),
                pragmas=pragmas,
                providers=dict(raw_providers),
                default_provider=default_provider,
            ),
            warnings,
        )
