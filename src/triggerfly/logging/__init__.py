"""TriggerFly Logging — hexagonal logging port and adapters."""

from triggerfly.logging.port import LoggingPort
from triggerfly.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
