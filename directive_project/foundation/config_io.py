from __future__ import annotations

import importlib
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

GENERATOR_TAG = "!generator"


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    start_path = Path(start or os.getcwd()).resolve()
    if start_path.is_file():
        start_path = start_path.parent

    markers = ("pyproject.toml", ".git")
    for candidate in (start_path, *start_path.parents):
        if (candidate / "pyproject.toml").is_file():
            return str(candidate)
        if (candidate / ".git").exists():
            return str(candidate)

    raise FileNotFoundError(
        "Cannot locate repo root: searched from "
        f"{start_path} for {', '.join(markers)}"
    )


@dataclass(frozen=True)
class GeneratorRef:
    """Lazy `module:attr` reference to a generator callable declared in YAML."""

    path: str

    def __post_init__(self) -> None:
        text = (self.path or "").strip()
        module, sep, attr = text.partition(":")
        if not sep or not module.strip() or not attr.strip():
            raise ValueError(f"{GENERATOR_TAG} must look like 'module:attr' (got {self.path!r})")
        object.__setattr__(self, "path", f"{module.strip()}:{attr.strip()}")

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.load()(*args, **kwargs)

    def load(self) -> Any:
        module_name, _, attr_path = self.path.partition(":")
        try:
            target: Any = importlib.import_module(module_name)
        except ImportError as exc:
            raise ValueError(f"{GENERATOR_TAG} {self.path}: cannot import {module_name}: {exc}") from exc
        for part in attr_path.split("."):
            try:
                target = getattr(target, part)
            except AttributeError as exc:
                raise ValueError(f"{GENERATOR_TAG} {self.path}: missing attribute {part}") from exc
        if not callable(target):
            raise ValueError(
                f"{GENERATOR_TAG} {self.path} is not callable (type={type(target).__name__})"
            )
        return target


class ConfigLoader(yaml.SafeLoader):
    """Safe YAML loader that also understands the `!generator module:attr` tag."""


def _construct_generator(loader: yaml.SafeLoader, node: yaml.Node) -> GeneratorRef:
    if not isinstance(node, yaml.ScalarNode):
        raise yaml.constructor.ConstructorError(
            None, None, f"{GENERATOR_TAG} expects a scalar 'module:attr'", node.start_mark
        )
    try:
        return GeneratorRef(loader.construct_scalar(node))
    except ValueError as exc:
        raise yaml.constructor.ConstructorError(None, None, str(exc), node.start_mark) from exc


ConfigLoader.add_constructor(GENERATOR_TAG, _construct_generator)


def load_yaml_text(text: str, *, source: str = "<string>") -> Any:
    try:
        return yaml.load(text, Loader=ConfigLoader)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {source}: {exc}") from exc


def _load_yaml_mapping(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.load(handle, Loader=ConfigLoader)
    except FileNotFoundError:
        raise
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def deep_merge(base: Any, overlay: Any, *, path: str) -> Any:
    if overlay is None:
        return None

    if base is None:
        return overlay

    if isinstance(base, Mapping):
        if not isinstance(overlay, Mapping):
            raise ValueError(
                f"Invalid config overlay merge at {path}: base is mapping but overlay is {type(overlay).__name__}"
            )
        merged: dict[str, Any] = dict(base)
        for key, overlay_value in overlay.items():
            next_path = f"{path}.{key}" if path else str(key)
            if key in base:
                merged[key] = deep_merge(base[key], overlay_value, path=next_path)
            else:
                merged[key] = overlay_value
        return merged

    if isinstance(base, (list, tuple)):
        if not isinstance(overlay, (list, tuple)):
            raise ValueError(
                f"Invalid config overlay merge at {path}: base is list but overlay is {type(overlay).__name__}"
            )
        # Declaration lists are order-sensitive: an overlay list replaces the base list.
        return list(overlay)

    if isinstance(overlay, (Mapping, list, tuple)):
        raise ValueError(
            f"Invalid config overlay merge at {path}: base is {type(base).__name__} but overlay is {type(overlay).__name__}"
        )

    return overlay


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str = "DIRECTIVE_PROJECT_CONFIG",
    config_rel_path: str = "config",
    config_name: str = "config",
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Load the YAML config mapping and a small metadata dict describing its origin.

    An explicit `config_path` (or the env var) loads exactly one file. Otherwise
    `<repo_root>/config/config.yaml` is loaded and `config.local.yaml` next to
    it, when present, is deep-merged on top.
    """

    explicit_path = None
    if config_path is not None:
        explicit_path = str(config_path).strip() or None
    elif env_var:
        raw_env = os.environ.get(str(env_var), "")
        explicit_path = raw_env.strip() or None

    if explicit_path:
        expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
        cfg = _load_yaml_mapping(expanded)
        meta = {
            "mode": "env" if config_path is None else "explicit",
            "paths": [expanded],
            "env_var": env_var,
            "repo_root": None,
        }
        return cfg, meta

    if os.path.isabs(str(config_rel_path)):
        config_directory = str(config_rel_path)
        repo_root = None
    else:
        repo_root = find_repo_root(start_dir)
        config_directory = os.path.join(repo_root, str(config_rel_path))
    base_config_path = os.path.join(config_directory, config_name + ".yaml")
    local_overlay_path = os.path.join(config_directory, "config.local.yaml")

    if not os.path.exists(base_config_path):
        raise FileNotFoundError(f"Missing base config file: {base_config_path}")

    cfg = _load_yaml_mapping(base_config_path)
    loaded_paths = [os.path.abspath(base_config_path)]
    mode = "base"

    if os.path.exists(local_overlay_path):
        overlay = _load_yaml_mapping(local_overlay_path)
        cfg = deep_merge(cfg, overlay, path="")
        loaded_paths.append(os.path.abspath(local_overlay_path))
        mode = "base+local"

    meta = {"mode": mode, "paths": loaded_paths, "env_var": env_var, "repo_root": repo_root}
    return cfg, meta
