from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from typing import Any

from directivekit.errors import DirectiveError
from directive_project.foundation.config_io import load_config, load_yaml_text
from directive_project.foundation.logging_utils import setup_logger
from directive_project.framework.config import DirectiveConfig
from directive_project.framework.session import DirectiveSession


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="directive-project", add_help=True)
    parser.add_argument("--config", default=None, help="Config YAML (default: repo config/config.yaml)")
    parser.add_argument("--log-level", default=None, help="Override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list-bundles", help="List providers and their bundles")

    for command, help_text in (
        ("resolve", "Resolve a request and print the ordered directives"),
        ("apply", "Resolve a request and apply it to a fresh target"),
    ):
        cmd = sub.add_parser(command, help=help_text)
        cmd.add_argument("--provider", default=None, help="Provider name (default: default_provider)")
        cmd.add_argument(
            "--request",
            required=True,
            help='Request tokens as a YAML flow list, e.g. "[withSig, -exclude, [warnings]]"',
        )
        if command == "apply":
            cmd.add_argument("--target", default="main", help="Name of the target context")

    return parser


def parse_request_tokens(text: str) -> list[Any]:
    tokens = load_yaml_text(text, source="--request")
    if tokens is None:
        return []
    if isinstance(tokens, str):
        return [tokens]
    if not isinstance(tokens, list):
        raise ValueError(f"--request must be a YAML list (type={type(tokens).__name__})")
    return tokens


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    cfg_dict, cfg_meta = load_config(config_path=args.config)
    cfg, cfg_warnings = DirectiveConfig.from_dict(cfg_dict)

    logger = setup_logger(
        "directive_project",
        level=args.log_level or cfg.logging.level,
        log_file=cfg.logging.log_path,
    )
    logger.info("Loaded config (%s) from %s", cfg_meta["mode"], ", ".join(cfg_meta["paths"]))
    for warning in cfg_warnings:
        logger.warning("%s", warning)

    session = DirectiveSession.from_config(cfg, logger=logger)

    if args.command == "list-bundles":
        _emit(list(session.registry.describe()))
        return 0

    try:
        tokens = parse_request_tokens(args.request)

        if args.command == "resolve":
            resolved = session.resolve(tokens, provider=args.provider)
            _emit(
                {
                    "request": resolved.request.describe(),
                    "directives": [directive.describe() for directive in resolved.directives],
                    "labels": list(resolved.labels),
                    "metadata": resolved.metadata,
                }
            )
            return 0

        if args.command == "apply":
            context = session.new_context(args.target)
            report = session.apply(tokens, context, provider=args.provider)
            _emit({"target": context.describe(), "applied": list(report.records)})
            return 0
    except DirectiveError as exc:
        logger.error("%s failed: %s", args.command, exc)
        if exc.directive_path:
            logger.error("Failed at %s after %d applied directives", exc.directive_path, len(exc.applied))
        return 1
    except ValueError as exc:
        # Unknown --provider or unparseable --request.
        logger.error("%s failed: %s", args.command, exc)
        return 1

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
