# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""TriggerFly — trigger handler base class with recursion, bypass and processed-id guards."""

from __future__ import annotations

from triggerfly.core.config import Config
from triggerfly.kernel.exceptions import (
    NotInTriggerContextException,
    TooManyInvocationsException,
    TriggerException,
    TriggerFlyException,
)
from triggerfly.logging.port import LoggingPort
from triggerfly.logging.structlog_adapter import StructlogAdapter
from triggerfly.trigger import (
    TriggerContext,
    TriggerHandler,
    TriggerInvocation,
    TriggerProperties,
    TriggerScope,
    invocation_scope,
    trigger_scope,
)

__version__ = "0.1.0"


def configure(config: Config | None = None, logging_port: LoggingPort | None = None) -> TriggerProperties:
    """Apply ``triggerfly.*`` configuration: logging and trigger scope defaults.

    With no *config*, the bundled defaults are used. Logging goes through
    *logging_port*, a :class:`StructlogAdapter` unless given. Scopes created
    after this call pick up the bound :class:`TriggerProperties`.
    """
    if config is None:
        config = Config.defaults()
    if logging_port is None:
        logging_port = StructlogAdapter()
    logging_port.configure(config)
    properties = config.bind(TriggerProperties)
    TriggerScope.configure_defaults(properties)
    return properties


__all__ = [
    "Config",
    "LoggingPort",
    "NotInTriggerContextException",
    "TooManyInvocationsException",
    "TriggerContext",
    "TriggerException",
    "TriggerFlyException",
    "TriggerHandler",
    "TriggerInvocation",
    "TriggerProperties",
    "TriggerScope",
    "configure",
    "invocation_scope",
    "trigger_scope",
]
