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
"""TriggerInvocation — what the host tells a handler about the current write.

The host either passes an invocation to ``TriggerHandler.run()`` directly or
binds it for the duration of a block with :func:`invocation_scope`.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from triggerfly.trigger.context import TriggerContext

_invocation_var: ContextVar[TriggerInvocation | None] = ContextVar(
    "triggerfly_invocation", default=None
)


def record_id(record: Any, id_field: str = "id") -> Any:
    """Extract the identifier of a record given as a mapping or an object."""
    if isinstance(record, Mapping):
        return record.get(id_field)
    return getattr(record, id_field, None)


@dataclass(frozen=True)
class TriggerInvocation:
    """Flags and record snapshots describing one trigger invocation.

    ``new`` holds the records as they are (or will be) written; ``old``
    holds the prior state for updates and deletes.
    """

    is_executing: bool = False
    is_before: bool = False
    is_after: bool = False
    is_insert: bool = False
    is_update: bool = False
    is_delete: bool = False
    is_undelete: bool = False
    new: Sequence[Any] = field(default_factory=tuple)
    old: Sequence[Any] = field(default_factory=tuple)

    @classmethod
    def of(
        cls,
        context: TriggerContext,
        new: Sequence[Any] | None = None,
        old: Sequence[Any] | None = None,
    ) -> TriggerInvocation:
        """Build the executing invocation whose flags resolve to *context*."""
        return cls(
            is_executing=True,
            is_before=context.is_before,
            is_after=context.is_after,
            is_insert=context.operation == "insert",
            is_update=context.operation == "update",
            is_delete=context.operation == "delete",
            is_undelete=context.operation == "undelete",
            new=tuple(new or ()),
            old=tuple(old or ()),
        )

    @classmethod
    def idle(cls) -> TriggerInvocation:
        """The invocation seen when no trigger is executing."""
        return cls()

    @classmethod
    def current(cls) -> TriggerInvocation:
        """The invocation bound by :func:`invocation_scope`, or :meth:`idle`."""
        invocation = _invocation_var.get()
        return invocation if invocation is not None else cls.idle()

    @property
    def size(self) -> int:
        return max(len(self.new), len(self.old))

    def new_map(self, id_field: str = "id") -> dict[Any, Any]:
        return {record_id(r, id_field): r for r in self.new}

    def old_map(self, id_field: str = "id") -> dict[Any, Any]:
        return {record_id(r, id_field): r for r in self.old}


@contextmanager
def invocation_scope(invocation: TriggerInvocation) -> Iterator[TriggerInvocation]:
    """Bind *invocation* as the current one for handlers run without arguments."""
    token = _invocation_var.set(invocation)
    try:
        yield invocation
    finally:
        _invocation_var.reset(token)
