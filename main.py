#!/usr/bin/env python3
"""
MQTT Topic Explorer — entry point.

Without a subcommand, subscribes to the configured topic filters (default
#) and shows every topic seen as a collapsible tree. Subcommands log,
read, publish and clean retained messages.

Usage:
    mqtt-explorer -b mqtt://localhost:1883
    mqtt-explorer log 'sensors/#' -v
    mqtt-explorer read-one sensors/temp --ignore-retained
    mqtt-explorer publish sensors/temp 21.5 --retain
    mqtt-explorer clean-retained 'sensors/#' --dry-run

Broker settings also come from MQTT_* environment variables or .env.
"""

import sys

from pydantic import ValidationError

from cli import apply_overrides, build_parser
from commands import clean_retained, interactive, log, publish, read_one
from config import get_settings
from core.exceptions import ExplorerError
from logger import configure_logging, get_logger

logger = get_logger("main")


def dispatch(settings, args) -> int:
    if args.command == "clean-retained":
        return clean_retained.run(settings, args.topic, dry_run=args.dry_run, timeout=args.timeout)
    if args.command == "log":
        return log.run(settings, args.topic, verbose=args.verbose)
    if args.command == "read-one":
        return read_one.run(settings, args.topic, ignore_retained=args.ignore_retained)
    if args.command == "publish":
        return publish.run(settings, args.topic, args.payload, retain=args.retain, verbose=args.verbose)
    return interactive.run(settings)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = apply_overrides(get_settings(), args)
    except ValidationError as e:
        print(f"Configuration validation failed: {e}", file=sys.stderr)
        return 2
    except ExplorerError as e:
        print(e.message, file=sys.stderr)
        return 2

    log_cfg = settings.log
    # The curses screen owns the terminal
    output = "file" if args.command is None else log_cfg.output
    configure_logging(
        environment=settings.environment,
        log_level=log_cfg.level,
        json_format=log_cfg.format == "json",
        output=output,
        file_path=log_cfg.file_path,
    )

    try:
        return dispatch(settings, args)
    except ExplorerError as e:
        logger.error(e.message, **e.details)
        if output == "file":
            print(e.message, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
