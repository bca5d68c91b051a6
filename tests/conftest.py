"""MQTT Topic Explorer — Pytest Configuration & Fixtures.

Provides:
1. A clean settings cache and environment for every test.
2. A fake paho client (patched into mqtt_client) recording connect,
   subscribe and publish calls, so no broker is needed.
3. Small message / topic fixtures shared by the tree tests.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from config import get_settings
from logger import configure_logging
from topic_history import TopicHistory

# Node set used throughout the view tests
ALL_EXAMPLES = [
    "a",
    "a/b",
    "a/b/c",
    "a/d",
    "e",
    "e/f",
    "e/f/g",
    "e/f/g/h",
    "e/f/g/h/i",
    "e/j",
]


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    """Route structlog through stdlib logging on stderr so stdout only carries command output."""
    configure_logging(environment="development", log_level="WARNING", json_format=False, output="stderr")


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate tests from the caller's MQTT_/LOG_/EXPLORER_ env and any .env file."""
    import os

    for key in list(os.environ):
        if key.startswith(("MQTT_", "LOG_", "EXPLORER_")) or key in ("ENVIRONMENT", "DEBUG"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def all_examples() -> list[str]:
    return list(ALL_EXAMPLES)


@pytest.fixture
def history() -> TopicHistory:
    return TopicHistory(history_size=5)


def make_message(topic: str, payload: bytes = b"1", qos: int = 0, retain: bool = False) -> SimpleNamespace:
    """Stand-in for paho's MQTTMessage with the attributes the commands read."""
    return SimpleNamespace(topic=topic, payload=payload, qos=qos, retain=retain)


@pytest.fixture
def fake_paho():
    """Patch paho's Client; connect() immediately reports a successful CONNACK."""
    client = MagicMock(name="paho_client")

    def connect(host, port, keepalive=60):
        client.on_connect(client, None, SimpleNamespace(session_present=False), 0, None)
        return 0

    client.connect.side_effect = connect
    with patch("mqtt_client.mqtt.Client", return_value=client) as factory:
        client.factory = factory
        yield client


@pytest.fixture
def message_factory():
    return make_message
