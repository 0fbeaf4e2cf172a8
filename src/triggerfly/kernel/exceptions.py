"""Unified exception hierarchy for TriggerFly.

All library exceptions inherit from TriggerFlyException, enabling unified
error handling across modules.

Categories:
- TriggerException: Trigger dispatch failures raised by TriggerHandler.run()
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class TriggerFlyException(Exception):
    """Base exception for all TriggerFly errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "TRIGGER_MAX_LOOP_COUNT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Trigger Exceptions
# =============================================================================


class TriggerException(TriggerFlyException):
    """Trigger dispatch errors. Fatal to the current invocation, never retried."""


class NotInTriggerContextException(TriggerException):
    """A handler was run while the host reported no active trigger invocation."""

    def __init__(self, message: str = "Trigger handler called outside of trigger execution") -> None:
        super().__init__(message, code="TRIGGER_NOT_EXECUTING")


class TooManyInvocationsException(TriggerException):
    """A handler exceeded its maximum loop count within one execution."""

    def __init__(self, handler_name: str, max_count: int) -> None:
        super().__init__(
            f"Maximum loop count of {max_count} reached in {handler_name}",
            code="TRIGGER_MAX_LOOP_COUNT",
            context={"handler": handler_name, "max": max_count},
        )
        self.handler_name = handler_name
        self.max_count = max_count
