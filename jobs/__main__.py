"""Command-line entrypoint for batch jobs."""

from __future__ import annotations

import argparse
import os

from jobs.build_panel import main as run_build_panel
from jobs.config import load_config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="County housing panel job runner")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build-panel", help="Read all sources and reconcile the county/month panel"
    )
    build_parser.add_argument(
        "--data-dir",
        help="Directory holding the raw input files (overrides HOUSING_DATA_DIR)",
    )
    build_parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL for this invocation (e.g. DEBUG, INFO)",
    )
    build_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when any in-window row is missing a tracked field",
    )
    build_parser.add_argument(
        "--fit-models",
        action="store_true",
        help="Fit the regression, random forest and ARIMA models on the complete rows",
    )

    show_parser = subparsers.add_parser("show-config", help="Show the resolved configuration")
    show_parser.add_argument("--data-dir", help="Directory holding the raw input files")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.data_dir)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    if args.command == "show-config":
        for line in config.describe():
            print(line)
        return 0

    if args.command == "build-panel":
        if args.log_level:
            os.environ["LOG_LEVEL"] = args.log_level
        return run_build_panel(config, strict=args.strict, with_models=args.fit_models)

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
