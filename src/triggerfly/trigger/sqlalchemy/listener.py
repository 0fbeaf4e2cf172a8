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
"""Trigger dispatch from SQLAlchemy ORM mapper events.

Registers ``before_*``/``after_*`` insert, update and delete listeners on an
entity class and runs a trigger handler for each flushed row. Rows of a
:class:`~triggerfly.trigger.sqlalchemy.entity.SoftDeleteMixin` entity whose
``deleted_at`` gets cleared are dispatched as ``AFTER_UNDELETE`` rather than
as an update.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy import event, inspect

from triggerfly.trigger.context import TriggerContext
from triggerfly.trigger.handler import TriggerHandler
from triggerfly.trigger.invocation import TriggerInvocation
from triggerfly.trigger.sqlalchemy.entity import SoftDeleteMixin

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[], TriggerHandler]

_EVENTS = (
    "before_insert",
    "after_insert",
    "before_update",
    "after_update",
    "before_delete",
    "after_delete",
)


def snapshot(target: Any) -> dict[str, Any]:
    """Column values of *target* as last loaded from or written to the database."""
    state = inspect(target)
    values: dict[str, Any] = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.deleted:
            values[attr.key] = history.deleted[0]
        elif history.unchanged:
            values[attr.key] = history.unchanged[0]
        else:
            values[attr.key] = state.dict.get(attr.key)
    return values


def is_restore(target: Any) -> bool:
    """Whether the pending flush of *target* clears a stored ``deleted_at``.

    Read from attribute history, so a restore that was rolled back, expired
    or refreshed away no longer counts.
    """
    if not isinstance(target, SoftDeleteMixin):
        return False
    added, _, deleted = inspect(target).attrs.deleted_at.history
    return list(added) == [None] and any(isinstance(value, datetime) for value in deleted)


class TriggerEntityListener:
    """Runs a trigger handler for every row of *entity_cls* the ORM flushes.

    *handler_factory* is called once per event, typically the handler class
    itself. Guard state is shared through the current TriggerScope, so loop
    limits and bypasses span all rows and flushes of one scope. Listeners
    propagate to mapped subclasses of *entity_cls*.

    Call :meth:`register` once at startup and :meth:`unregister` to detach.
    """

    def __init__(self, entity_cls: type, handler_factory: HandlerFactory) -> None:
        self._entity_cls = entity_cls
        self._handler_factory = handler_factory
        self._registered = False

    @property
    def registered(self) -> bool:
        return self._registered

    def register(self) -> None:
        """Attach mapper listeners for insert, update and delete."""
        if self._registered:
            return
        for name in _EVENTS:
            event.listen(self._entity_cls, name, getattr(self, f"_on_{name}"), propagate=True)
        self._registered = True
        logger.info("Registered trigger listeners on %s", self._entity_cls.__name__)

    def unregister(self) -> None:
        if not self._registered:
            return
        for name in _EVENTS:
            event.remove(self._entity_cls, name, getattr(self, f"_on_{name}"))
        self._registered = False
        logger.info("Removed trigger listeners from %s", self._entity_cls.__name__)

    def _dispatch(self, context: TriggerContext, new: list[Any], old: list[Any]) -> None:
        self._handler_factory().run(TriggerInvocation.of(context, new=new, old=old))

    def _on_before_insert(self, mapper: Any, connection: Any, target: Any) -> None:
        self._dispatch(TriggerContext.BEFORE_INSERT, [target], [])

    def _on_after_insert(self, mapper: Any, connection: Any, target: Any) -> None:
        self._dispatch(TriggerContext.AFTER_INSERT, [target], [])

    def _on_before_update(self, mapper: Any, connection: Any, target: Any) -> None:
        if is_restore(target):
            return
        self._dispatch(TriggerContext.BEFORE_UPDATE, [target], [snapshot(target)])

    def _on_after_update(self, mapper: Any, connection: Any, target: Any) -> None:
        context = TriggerContext.AFTER_UNDELETE if is_restore(target) else TriggerContext.AFTER_UPDATE
        self._dispatch(context, [target], [snapshot(target)])

    def _on_before_delete(self, mapper: Any, connection: Any, target: Any) -> None:
        self._dispatch(TriggerContext.BEFORE_DELETE, [], [snapshot(target)])

    def _on_after_delete(self, mapper: Any, connection: Any, target: Any) -> None:
        self._dispatch(TriggerContext.AFTER_DELETE, [], [snapshot(target)])
