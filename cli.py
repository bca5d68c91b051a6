"""Command line parsing and mapping of options onto Settings."""

from __future__ import annotations

import argparse
import math
from typing import Any

from pydantic import SecretStr

from config import Settings, parse_broker_url
from core.exceptions import ConfigurationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mqtt-explorer",
        description="Explore MQTT topics as a collapsible tree, or log, read, publish and clean messages",
    )
    parser.add_argument("-b", "--broker", help="Broker URL: mqtt://, mqtts://, ws:// or wss:// (env MQTT_BROKER_HOST/PORT/TRANSPORT)")
    parser.add_argument("-u", "--username", help="Broker username")
    parser.add_argument("--password", help="Broker password")
    parser.add_argument("-i", "--client-id", help="MQTT client id (default: random)")
    parser.add_argument("--insecure", action="store_true", help="Do not verify the broker TLS certificate")
    parser.add_argument("--client-cert", help="Client certificate (PEM) for mutual TLS")
    parser.add_argument("--client-key", help="Client private key (PEM) for mutual TLS")
    parser.add_argument("-t", "--topic", action="append", dest="subscribe_topics", help="Topic filter for the interactive view (repeatable, default: #)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Logging level")

    sub = parser.add_subparsers(dest="command")

    clean = sub.add_parser("clean-retained", help="Clear retained messages below a topic filter")
    clean.add_argument("topic", help="Topic filter, e.g. 'sensors/#'")
    clean.add_argument("--dry-run", action="store_true", help="Only list retained topics")
    clean.add_argument("--timeout", type=float, default=5.0, help="Stop after this many idle seconds (default: 5)")

    log = sub.add_parser("log", help="Print incoming messages line by line")
    log.add_argument("topic", nargs="+", help="Topic filters to subscribe")
    log.add_argument("-v", "--verbose", action="store_true", help="Add timestamps and payload sizes")

    read_one = sub.add_parser("read-one", help="Print the payload of the first message and exit")
    read_one.add_argument("topic", nargs="+", help="Topic filters to subscribe")
    read_one.add_argument("--ignore-retained", action="store_true", help="Wait for a live message")

    publish = sub.add_parser("publish", help="Publish one message and exit")
    publish.add_argument("topic", help="Topic to publish to")
    publish.add_argument("payload", help="Message payload")
    publish.add_argument("-r", "--retain", action="store_true", help="Publish as retained message")
    publish.add_argument("-v", "--verbose", action="store_true", help="Report the published message")

    return parser


def mqtt_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """MQTTSettings fields set explicitly on the command line.

    Raises:
        ConfigurationError: On a bad broker URL or a lone client cert/key.
    """
    overrides: dict[str, Any] = {}
    if args.broker:
        overrides.update(parse_broker_url(args.broker))
    if args.username:
        overrides["username"] = args.username
    if args.password:
        overrides["password"] = SecretStr(args.password)
    if args.client_id:
        overrides["client_id"] = args.client_id
    if args.insecure:
        overrides["insecure"] = True
    if bool(args.client_cert) != bool(args.client_key):
        raise ConfigurationError("client_cert", "--client-cert and --client-key must be given together")
    if args.client_cert:
        overrides["client_cert_path"] = args.client_cert
        overrides["client_key_path"] = args.client_key
    if args.subscribe_topics:
        overrides["subscribe_topics"] = args.subscribe_topics
    if args.command == "clean-retained":
        overrides["keepalive"] = max(1, math.ceil(args.timeout))
    return overrides


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Settings with command line options taking precedence over env/.env values."""
    # model_copy does not validate; mqtt_overrides only yields valid values
    mqtt = settings.mqtt.model_copy(update=mqtt_overrides(args))
    log = settings.log
    if args.log_level:
        log = log.model_copy(update={"level": args.log_level})
    return settings.model_copy(update={"mqtt": mqtt, "log": log})
