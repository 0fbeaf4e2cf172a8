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
"""Execution-scoped trigger state backed by contextvars.

A TriggerScope holds everything handlers share within one logical unit of
work: the bypass registry, the per-handler loop counters and the per-handler
processed-id sets. ``TriggerScope.current()`` creates one lazily; hosts that
own a unit-of-work boundary (a request, a session flush, a test) open a fresh
one with :func:`trigger_scope` so nothing leaks across executions.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from triggerfly.trigger.loop_count import LoopCount
from triggerfly.trigger.properties import TriggerProperties

_scope_var: ContextVar[TriggerScope | None] = ContextVar("triggerfly_trigger_scope", default=None)

_default_properties = TriggerProperties()


class TriggerScope:
    """Holds the shared guard state of one execution.

    Use ``TriggerScope.begin()`` to start a new scope for the current
    context, and ``TriggerScope.current()`` to retrieve (or lazily create) it.
    """

    def __init__(self, properties: TriggerProperties | None = None, scope_id: str | None = None) -> None:
        self._scope_id = scope_id or uuid.uuid4().hex
        self._properties = properties or _default_properties
        self._bypassed: set[str] = set()
        self._loop_counts: dict[str, LoopCount] = {}
        self._processed_ids: dict[str, dict[str, set[Any]]] = {}

    @property
    def scope_id(self) -> str:
        return self._scope_id

    @property
    def properties(self) -> TriggerProperties:
        return self._properties

    # -- bypass registry ------------------------------------------------------

    @property
    def bypassed(self) -> frozenset[str]:
        return frozenset(self._bypassed)

    def bypass(self, name: str) -> None:
        self._bypassed.add(name)

    def clear_bypass(self, name: str) -> None:
        self._bypassed.discard(name)

    def is_bypassed(self, name: str) -> bool:
        return name in self._bypassed

    def clear_all_bypasses(self) -> None:
        self._bypassed.clear()

    # -- loop counters --------------------------------------------------------

    def loop_count(self, name: str, max_count: int | None = None) -> LoopCount:
        """Return the counter for *name*, creating it on first use.

        A new counter starts with *max_count*, or the configured default when
        that is ``None``. An existing counter is returned unchanged.
        """
        counter = self._loop_counts.get(name)
        if counter is None:
            if max_count is None:
                max_count = self._properties.default_max_loop_count
            counter = self._loop_counts[name] = LoopCount(max_count)
        return counter

    def has_loop_count(self, name: str) -> bool:
        return name in self._loop_counts

    # -- processed ids --------------------------------------------------------

    def processed_ids(self, name: str, tag: str) -> set[Any]:
        """The mutable set of ids *name* has already seen under *tag*."""
        return self._processed_ids.setdefault(name, {}).setdefault(tag, set())

    def reset(self) -> None:
        """Forget all state held by this scope."""
        self._bypassed.clear()
        self._loop_counts.clear()
        self._processed_ids.clear()

    # -- context management ---------------------------------------------------

    @classmethod
    def begin(cls, properties: TriggerProperties | None = None) -> TriggerScope:
        """Create and set a new TriggerScope for the current context."""
        scope = cls(properties=properties)
        _scope_var.set(scope)
        return scope

    @classmethod
    def current(cls) -> TriggerScope:
        """Get the TriggerScope of the current context, starting one if needed."""
        scope = _scope_var.get()
        if scope is None:
            scope = cls.begin()
        return scope

    @classmethod
    def active(cls) -> TriggerScope | None:
        """Get the TriggerScope of the current context without creating one."""
        return _scope_var.get()

    @classmethod
    def clear(cls) -> None:
        """Drop the TriggerScope of the current context."""
        _scope_var.set(None)

    @classmethod
    def configure_defaults(cls, properties: TriggerProperties) -> None:
        """Set the properties used by scopes created without explicit ones."""
        global _default_properties
        _default_properties = properties

    @classmethod
    def default_properties(cls) -> TriggerProperties:
        return _default_properties


@contextmanager
def trigger_scope(properties: TriggerProperties | None = None) -> Iterator[TriggerScope]:
    """Run a block inside a fresh TriggerScope, restoring the previous one after."""
    scope = TriggerScope(properties=properties)
    token = _scope_var.set(scope)
    try:
        yield scope
    finally:
        _scope_var.reset(token)
