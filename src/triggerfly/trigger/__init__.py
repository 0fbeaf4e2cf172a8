"""TriggerFly Trigger — lifecycle dispatch with recursion, bypass and processed-id guards."""

from triggerfly.trigger.context import TriggerContext, resolve_context
from triggerfly.trigger.handler import TriggerHandler, handler_name_of
from triggerfly.trigger.invocation import TriggerInvocation, invocation_scope, record_id
from triggerfly.trigger.loop_count import DEFAULT_MAX_LOOP_COUNT, UNBOUNDED, LoopCount
from triggerfly.trigger.properties import TriggerProperties
from triggerfly.trigger.scope import TriggerScope, trigger_scope

__all__ = [
    # Dispatch
    "TriggerContext",
    "TriggerHandler",
    "TriggerInvocation",
    "handler_name_of",
    "invocation_scope",
    "record_id",
    "resolve_context",
    # Guards
    "DEFAULT_MAX_LOOP_COUNT",
    "LoopCount",
    "TriggerScope",
    "UNBOUNDED",
    "trigger_scope",
    # Configuration
    "TriggerProperties",
]
