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
"""Lifecycle contexts a trigger handler can be dispatched into."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from triggerfly.kernel.exceptions import NotInTriggerContextException

if TYPE_CHECKING:
    from triggerfly.trigger.invocation import TriggerInvocation


class TriggerContext(Enum):
    """The lifecycle moment of one invocation: timing plus operation."""

    BEFORE_INSERT = ("before", "insert")
    BEFORE_UPDATE = ("before", "update")
    BEFORE_DELETE = ("before", "delete")
    AFTER_INSERT = ("after", "insert")
    AFTER_UPDATE = ("after", "update")
    AFTER_DELETE = ("after", "delete")
    AFTER_UNDELETE = ("after", "undelete")

    @property
    def timing(self) -> str:
        return self.value[0]

    @property
    def operation(self) -> str:
        return self.value[1]

    @property
    def is_before(self) -> bool:
        return self.timing == "before"

    @property
    def is_after(self) -> bool:
        return self.timing == "after"

    @property
    def method_name(self) -> str:
        """Name of the TriggerHandler method serving this context, e.g. ``before_insert``."""
        return f"{self.timing}_{self.operation}"


def resolve_context(invocation: TriggerInvocation) -> TriggerContext | None:
    """Map an invocation's flags to its context.

    Raises NotInTriggerContextException when the host reports no active
    invocation. Flag combinations that match no context resolve to ``None``.
    """
    if not invocation.is_executing:
        raise NotInTriggerContextException()

    if invocation.is_before:
        if invocation.is_insert:
            return TriggerContext.BEFORE_INSERT
        if invocation.is_update:
            return TriggerContext.BEFORE_UPDATE
        if invocation.is_delete:
            return TriggerContext.BEFORE_DELETE
    elif invocation.is_after:
        if invocation.is_insert:
            return TriggerContext.AFTER_INSERT
        if invocation.is_update:
            return TriggerContext.AFTER_UPDATE
        if invocation.is_delete:
            return TriggerContext.AFTER_DELETE
        if invocation.is_undelete:
            return TriggerContext.AFTER_UNDELETE
    return None
