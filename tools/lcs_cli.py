"""CLI for building and exporting LCS model specifications.

Usage:
    uv run python tools/lcs_cli.py --processes X Y --horizon 5 --coupled --stochastic
    uv run python tools/lcs_cli.py --config model.yaml --format equations

The default output is the path list. ``--format json`` emits both renderings
plus the structure report so other tools can read one document.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from lcs_spec import (
    LCSSpecError,
    build_lcs,
    format_equation_text,
    format_path_list,
    summarize,
    to_equation_text,
    to_path_list,
)
from lcs_spec.schemas import Invariance, LCSConfig, LevelMean
from lcs_spec.utils.config import get_settings


def _indicator_pair(text: str) -> tuple[str, int]:
    process, sep, count = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"Expected PROCESS=COUNT, got '{text}'")
    try:
        return process, int(count)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Indicator count must be an integer: '{text}'") from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a latent change score model specification.")
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with LCSConfig fields (command-line options override it).",
    )
    parser.add_argument("--processes", nargs="+", help="One or two process identifiers.")
    parser.add_argument("--horizon", type=int, help="Number of measurement occasions.")
    parser.add_argument(
        "--indicators",
        nargs="*",
        type=_indicator_pair,
        default=[],
        metavar="PROCESS=COUNT",
        help="Indicator count per process (default 1).",
    )
    parser.add_argument("--coupled", action="store_true", default=None)
    parser.add_argument("--stochastic", action="store_true", default=None)
    parser.add_argument("--invariance", choices=[i.value for i in Invariance])
    parser.add_argument("--level-mean", choices=[m.value for m in LevelMean])
    parser.add_argument(
        "--format",
        choices=("path-list", "equations", "json"),
        default="path-list",
        help="Output format (default: path-list).",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact).")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings).")
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> LCSConfig:
    raw: dict = {}
    if args.config is not None:
        with args.config.open() as f:
            raw = yaml.safe_load(f) or {}
    overrides = {
        "processes": args.processes,
        "horizon": args.horizon,
        "coupled": args.coupled,
        "stochastic": args.stochastic,
        "invariance": args.invariance,
        "level_mean": args.level_mean,
    }
    raw.update({k: v for k, v in overrides.items() if v is not None})
    if args.indicators:
        raw["indicators"] = {**raw.get("indicators", {}), **dict(args.indicators)}
    return LCSConfig.coerce(raw)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=(args.log_level or settings.logging.level).upper(),
        format=settings.logging.format,
    )
    try:
        config = config_from_args(args)
        spec = build_lcs(config)
        if args.format == "path-list":
            sys.stdout.write(format_path_list(spec))
        elif args.format == "equations":
            sys.stdout.write(format_equation_text(spec))
        else:
            payload = {
                "config": config.model_dump(mode="json"),
                "report": summarize(spec).to_dict(),
                "path_list": [row._asdict() for row in to_path_list(spec)],
                "equations": to_equation_text(spec),
            }
            indent = None if args.indent <= 0 else args.indent
            print(json.dumps(payload, indent=indent))
    except FileNotFoundError as exc:
        print(f"File not found: {exc.filename}", file=sys.stderr)
        return 1
    except LCSSpecError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
