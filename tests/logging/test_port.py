"""Tests for LoggingPort protocol and its use by triggerfly.configure."""

from typing import Any

import triggerfly
from triggerfly.core.config import Config
from triggerfly.logging.port import LoggingPort
from triggerfly.logging.structlog_adapter import StructlogAdapter
from triggerfly.trigger.scope import TriggerScope


class RecordingLogging:
    def __init__(self) -> None:
        self.configured: list[Config] = []
        self.levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        self.configured.append(config)

    def get_logger(self, name: str) -> Any:
        return name

    def set_level(self, name: str, level: str) -> None:
        self.levels[name] = level


class TestLoggingPortProtocol:
    def test_structlog_adapter_is_a_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)

    def test_structural_match_is_instance(self):
        assert isinstance(RecordingLogging(), LoggingPort)

    def test_missing_methods_is_not_instance(self):
        class LoggerOnly:
            def get_logger(self, name: str) -> Any:
                return name

        assert not isinstance(LoggerOnly(), LoggingPort)


class TestConfigureWithPort:
    def test_configure_hands_config_to_the_port(self):
        port = RecordingLogging()
        config = Config({"triggerfly": {"trigger": {"default_max_loop_count": 4}}})
        props = triggerfly.configure(config, logging_port=port)
        assert port.configured == [config]
        assert props.default_max_loop_count == 4
        assert TriggerScope.default_properties() is props

    def test_configure_with_defaults_uses_bundled_config(self):
        port = RecordingLogging()
        triggerfly.configure(logging_port=port)
        assert port.configured[0].get("triggerfly.trigger.id_field") == "id"
