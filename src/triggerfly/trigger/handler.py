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
"""TriggerHandler — base class routing trigger invocations to lifecycle methods.

Usage:
    class AccountHandler(TriggerHandler):
        def before_update(self) -> None:
            for account in self.invocation.new:
                account.name = account.name.strip()

    AccountHandler().run(TriggerInvocation.of(TriggerContext.BEFORE_UPDATE, new=accounts))

Every dispatch goes through three guards that share state across all
handler instances of the current :class:`TriggerScope`: the bypass registry,
the loop counter of the handler's name, and the processed-id sets returned
by :meth:`TriggerHandler.get_ids_that_have_not_been_processed`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, ClassVar

import structlog

from triggerfly.kernel.exceptions import TooManyInvocationsException
from triggerfly.trigger.context import TriggerContext, resolve_context
from triggerfly.trigger.invocation import TriggerInvocation, record_id
from triggerfly.trigger.loop_count import LoopCount
from triggerfly.trigger.scope import TriggerScope

logger = structlog.get_logger("triggerfly.trigger")

HandlerRef = str | type["TriggerHandler"]


def handler_name_of(ref: HandlerRef) -> str:
    """Resolve a handler class or name to the key guard state is stored under."""
    if isinstance(ref, str):
        return ref
    return ref.handler_name or ref.__name__


class TriggerHandler:
    """Dispatches an invocation to ``before_*``/``after_*`` methods.

    The handler name scoping all guard state is, in order of precedence, the
    ``handler_name`` constructor argument, the ``handler_name`` class
    attribute, or the class name.
    """

    handler_name: ClassVar[str | None] = None
    id_field: ClassVar[str | None] = None

    def __init__(self, handler_name: str | None = None) -> None:
        self._name = handler_name or handler_name_of(type(self))
        self.invocation: TriggerInvocation | None = None
        self.context: TriggerContext | None = None

    @property
    def name(self) -> str:
        return self._name

    def run(self, invocation: TriggerInvocation | None = None) -> None:
        """Dispatch *invocation* (or the currently bound one) to its context method.

        Raises:
            NotInTriggerContextException: no trigger is executing.
            TooManyInvocationsException: this handler's loop count went past its max.
        """
        if invocation is None:
            invocation = TriggerInvocation.current()
        context = resolve_context(invocation)
        if context is None:
            logger.debug("trigger_context_unmatched", handler=self._name)
            return

        scope = TriggerScope.current()
        if scope.is_bypassed(self._name):
            logger.debug("trigger_bypassed", handler=self._name, context=context.method_name)
            return

        counter = scope.loop_count(self._name)
        if counter.increment():
            logger.error(
                "trigger_max_loop_count_exceeded",
                handler=self._name,
                context=context.method_name,
                count=counter.count,
                max=counter.max,
            )
            raise TooManyInvocationsException(self._name, counter.max)

        previous = self.invocation, self.context
        self.invocation, self.context = invocation, context
        logger.debug(
            "trigger_dispatch",
            handler=self._name,
            context=context.method_name,
            size=invocation.size,
            loop_count=counter.count,
        )
        try:
            with structlog.contextvars.bound_contextvars(
                trigger_handler=self._name, trigger_context=context.method_name
            ):
                getattr(self, context.method_name)()
        finally:
            self.invocation, self.context = previous

    # -- loop count control ---------------------------------------------------

    @property
    def loop_count(self) -> LoopCount:
        return TriggerScope.current().loop_count(self._name)

    def set_max_loop_count(self, max_count: int) -> None:
        TriggerScope.current().loop_count(self._name, max_count).set_max(max_count)

    def clear_max_loop_count(self) -> None:
        self.loop_count.clear_max()

    # -- bypass registry ------------------------------------------------------

    @staticmethod
    def bypass(ref: HandlerRef) -> None:
        TriggerScope.current().bypass(handler_name_of(ref))

    @staticmethod
    def clear_bypass(ref: HandlerRef) -> None:
        TriggerScope.current().clear_bypass(handler_name_of(ref))

    @staticmethod
    def is_bypassed(ref: HandlerRef) -> bool:
        return TriggerScope.current().is_bypassed(handler_name_of(ref))

    @staticmethod
    def clear_all_bypasses() -> None:
        TriggerScope.current().clear_all_bypasses()

    @staticmethod
    @contextmanager
    def bypassed(*refs: HandlerRef) -> Iterator[None]:
        """Bypass handlers for the duration of a block.

        Only names that were not already bypassed on entry are cleared on exit.
        """
        scope = TriggerScope.current()
        added = [name for name in map(handler_name_of, refs) if not scope.is_bypassed(name)]
        for name in added:
            scope.bypass(name)
        try:
            yield
        finally:
            for name in added:
                scope.clear_bypass(name)

    # -- processed ids --------------------------------------------------------

    def get_ids_that_have_not_been_processed(self, tag: str, records: Iterable[Any]) -> list[Any]:
        """Return ids from *records* this handler has not yet seen under *tag*.

        Every returned id is marked as processed for the rest of the scope,
        including duplicates later in the same *records*.
        """
        scope = TriggerScope.current()
        id_field = type(self).id_field or scope.properties.id_field
        seen = scope.processed_ids(self._name, tag)
        fresh: list[Any] = []
        for record in records:
            rid = record_id(record, id_field)
            if rid not in seen:
                seen.add(rid)
                fresh.append(rid)
        return fresh

    # -- context methods ------------------------------------------------------

    def before_insert(self) -> None:
        """Called before records are inserted. Override in subclass to customize."""

    def before_update(self) -> None:
        """Called before records are updated. Override in subclass to customize."""

    def before_delete(self) -> None:
        """Called before records are deleted. Override in subclass to customize."""

    def after_insert(self) -> None:
        """Called after records are inserted. Override in subclass to customize."""

    def after_update(self) -> None:
        """Called after records are updated. Override in subclass to customize."""

    def after_delete(self) -> None:
        """Called after records are deleted. Override in subclass to customize."""

    def after_undelete(self) -> None:
        """Called after records are restored. Override in subclass to customize."""
