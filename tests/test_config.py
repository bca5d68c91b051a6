"""Tests for settings loading, broker URL parsing and command line overrides."""

import pytest
from pydantic import SecretStr, ValidationError

from cli import apply_overrides, build_parser, mqtt_overrides
from config import MQTTSettings, Settings, get_settings, parse_broker_url
from core.exceptions import ConfigurationError


class TestSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings.mqtt.broker_host == "localhost"
        assert settings.mqtt.broker_port == 1883
        assert settings.mqtt.transport == "tcp"
        assert settings.mqtt.subscribe_topics == ["#"]
        assert settings.mqtt.client_id.startswith("mqtt-explorer-")
        assert settings.log.level == "WARNING"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("MQTT_BROKER_HOST", "broker.example")
        monkeypatch.setenv("MQTT_BROKER_PORT", "8883")
        monkeypatch.setenv("MQTT_TRANSPORT", "ssl")
        monkeypatch.setenv("MQTT_SUBSCRIBE_TOPICS", "sensors/#, alarms/#")
        cfg = MQTTSettings()
        assert cfg.broker_host == "broker.example"
        assert cfg.tls_enabled
        assert cfg.subscribe_topics == ["sensors/#", "alarms/#"]
        assert cfg.url_safe == "mqtts://broker.example:8883"

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("MQTT_USERNAME=explorer\nMQTT_PASSWORD=hunter2\n")
        cfg = MQTTSettings()
        assert cfg.username == "explorer"
        assert cfg.password.get_secret_value() == "hunter2"
        assert "hunter2" not in repr(cfg)

    def test_cert_without_key_rejected(self, monkeypatch):
        monkeypatch.setenv("MQTT_CLIENT_CERT_PATH", "client.pem")
        with pytest.raises(ValidationError):
            MQTTSettings()

    def test_production_forbids_debug(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        with pytest.raises(ValidationError):
            Settings()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestParseBrokerUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("mqtt://broker", {"transport": "tcp", "broker_host": "broker", "broker_port": 1883}),
            ("mqtts://broker:8884", {"transport": "ssl", "broker_host": "broker", "broker_port": 8884}),
            ("broker.local:1884", {"transport": "tcp", "broker_host": "broker.local", "broker_port": 1884}),
            ("ws://broker/mqtt", {"transport": "ws", "broker_host": "broker", "broker_port": 80, "ws_path": "/mqtt"}),
            ("wss://broker", {"transport": "wss", "broker_host": "broker", "broker_port": 443, "ws_path": "/"}),
        ],
    )
    def test_known_schemes(self, url, expected):
        assert parse_broker_url(url) == expected

    def test_unknown_scheme(self):
        with pytest.raises(ConfigurationError):
            parse_broker_url("http://broker")

    def test_missing_host(self):
        with pytest.raises(ConfigurationError):
            parse_broker_url("mqtt://:1883")


class TestCommandLine:
    def test_interactive_without_subcommand(self):
        args = build_parser().parse_args(["-b", "mqtts://broker", "-t", "a/#", "-t", "b/#", "--insecure"])
        assert args.command is None
        settings = apply_overrides(get_settings(), args)
        assert settings.mqtt.transport == "ssl"
        assert settings.mqtt.insecure
        assert settings.mqtt.subscribe_topics == ["a/#", "b/#"]

    def test_subcommand_topic_does_not_leak_into_subscriptions(self):
        args = build_parser().parse_args(["clean-retained", "sensors/#", "--timeout", "2.5"])
        overrides = mqtt_overrides(args)
        assert "subscribe_topics" not in overrides
        assert overrides["keepalive"] == 3
        assert args.topic == "sensors/#"

    def test_password_becomes_secret(self):
        args = build_parser().parse_args(["-u", "me", "--password", "pw", "log", "#"])
        settings = apply_overrides(get_settings(), args)
        assert isinstance(settings.mqtt.password, SecretStr)
        assert settings.mqtt.password.get_secret_value() == "pw"
        assert settings.mqtt.username == "me"

    def test_lone_client_cert_rejected(self):
        args = build_parser().parse_args(["--client-cert", "c.pem", "log", "#"])
        with pytest.raises(ConfigurationError):
            mqtt_overrides(args)

    def test_publish_arguments(self):
        args = build_parser().parse_args(["publish", "a/b", "hello", "--retain", "-v"])
        assert (args.topic, args.payload, args.retain, args.verbose) == ("a/b", "hello", True, True)

    def test_log_level_override(self):
        args = build_parser().parse_args(["--log-level", "DEBUG", "read-one", "a"])
        settings = apply_overrides(get_settings(), args)
        assert settings.log.level == "DEBUG"
        assert args.ignore_retained is False
