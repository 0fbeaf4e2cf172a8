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
"""Tests for TriggerEntityListener — trigger dispatch from SQLAlchemy mapper events."""

from __future__ import annotations

import pytest
from sqlalchemy import Integer, String, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from triggerfly.kernel.exceptions import TooManyInvocationsException
from triggerfly.trigger.handler import TriggerHandler
from triggerfly.trigger.sqlalchemy.entity import Base, BaseEntity, SoftDeleteMixin
from triggerfly.trigger.sqlalchemy.listener import TriggerEntityListener, is_restore, snapshot


class Account(BaseEntity, SoftDeleteMixin):
    __tablename__ = "trigger_accounts"

    name: Mapped[str] = mapped_column(String(255))
    rating: Mapped[int] = mapped_column(Integer, default=0)


class Document(BaseEntity, SoftDeleteMixin):
    __tablename__ = "trigger_documents"
    __mapper_args__ = {"polymorphic_on": "kind", "polymorphic_identity": "document"}

    title: Mapped[str] = mapped_column(String(255))
    kind: Mapped[str] = mapped_column(String(20))


class Invoice(Document):
    __mapper_args__ = {"polymorphic_identity": "invoice"}


events: list[tuple[str, list, list]] = []


class AccountHandler(TriggerHandler):
    def _record(self) -> None:
        events.append(
            (
                self.context.method_name,
                [a.name for a in self.invocation.new],
                [dict(o) for o in self.invocation.old],
            )
        )

    before_insert = after_insert = _record
    before_update = after_update = _record
    before_delete = after_delete = _record
    after_undelete = _record


class DocumentHandler(TriggerHandler):
    def after_update(self) -> None:
        events.append(("after_update", [d.title for d in self.invocation.new], []))

    def after_undelete(self) -> None:
        events.append(("after_undelete", [d.title for d in self.invocation.new], []))


@pytest.fixture
def engine():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def listener():
    events.clear()
    listener = TriggerEntityListener(Account, AccountHandler)
    listener.register()
    yield listener
    listener.unregister()
    events.clear()


@pytest.fixture
def session(engine, listener):
    with Session(engine, expire_on_commit=False) as session:
        yield session


def contexts() -> list[str]:
    return [e[0] for e in events]


class TestRegistration:
    def test_register_is_idempotent(self, engine):
        listener = TriggerEntityListener(Account, AccountHandler)
        listener.register()
        listener.register()
        assert listener.registered
        events.clear()
        with Session(engine) as session:
            session.add(Account(name="Acme"))
            session.flush()
        listener.unregister()
        assert not listener.registered
        assert contexts() == ["before_insert", "after_insert"]

    def test_unregister_stops_dispatch(self, engine):
        listener = TriggerEntityListener(Account, AccountHandler)
        listener.register()
        listener.unregister()
        listener.unregister()
        events.clear()
        with Session(engine) as session:
            session.add(Account(name="Acme"))
            session.flush()
        assert events == []


class TestLifecycleDispatch:
    def test_insert(self, session):
        session.add(Account(name="Acme"))
        session.flush()
        assert events == [("before_insert", ["Acme"], []), ("after_insert", ["Acme"], [])]

    def test_update_carries_old_values(self, session):
        account = Account(name="Acme", rating=1)
        session.add(account)
        session.commit()
        events.clear()

        account.name = "Acme Corp"
        session.flush()
        assert contexts() == ["before_update", "after_update"]
        for _, new, old in events:
            assert new == ["Acme Corp"]
            assert old[0]["name"] == "Acme"
            assert old[0]["rating"] == 1
            assert old[0]["id"] == account.id

    def test_delete(self, session):
        account = Account(name="Acme")
        session.add(account)
        session.commit()
        events.clear()

        session.delete(account)
        session.flush()
        assert contexts() == ["before_delete", "after_delete"]
        assert all(new == [] and old[0]["name"] == "Acme" for _, new, old in events)

    def test_soft_delete_is_an_update(self, session):
        account = Account(name="Acme")
        session.add(account)
        session.commit()
        events.clear()

        account.soft_delete()
        session.flush()
        assert contexts() == ["before_update", "after_update"]

    def test_restore_dispatches_after_undelete_only(self, session):
        account = Account(name="Acme")
        account.soft_delete()
        session.add(account)
        session.commit()
        events.clear()

        account.restore()
        session.flush()
        assert contexts() == ["after_undelete"]
        assert events[0][2][0]["deleted_at"] is not None
        assert not account.is_deleted

    def test_restore_of_expired_row_is_detected(self, session):
        account = Account(name="Acme")
        account.soft_delete()
        session.add(account)
        session.commit()
        session.expire(account)
        events.clear()

        account.restore()
        session.flush()
        assert contexts() == ["after_undelete"]

    def test_restore_then_delete_again_is_an_update(self, session):
        account = Account(name="Acme")
        account.soft_delete()
        session.add(account)
        session.commit()
        events.clear()

        account.restore()
        account.soft_delete()
        session.flush()
        assert contexts() == ["before_update", "after_update"]


class TestGuardsThroughListener:
    def test_bypass_suppresses_dispatch(self, session):
        with TriggerHandler.bypassed(AccountHandler):
            session.add(Account(name="Quiet"))
            session.flush()
        assert events == []
        session.add(Account(name="Loud"))
        session.flush()
        assert contexts() == ["before_insert", "after_insert"]

    def test_loop_limit_spans_rows(self, session):
        AccountHandler().set_max_loop_count(3)
        session.add_all([Account(name="A"), Account(name="B")])
        with pytest.raises(TooManyInvocationsException):
            session.flush()


class TestSnapshot:
    def test_snapshot_of_pending_changes(self, session):
        account = Account(name="Acme", rating=2)
        session.add(account)
        session.commit()
        account.rating = 3
        values = snapshot(account)
        assert values["rating"] == 2
        assert values["name"] == "Acme"
        assert set(values) == {"id", "name", "rating", "deleted_at"}


class TestRestoreDetection:
    def test_rolled_back_restore_is_forgotten(self, session):
        account = Account(name="Acme")
        account.soft_delete()
        session.add(account)
        session.commit()
        events.clear()

        account.restore()
        session.rollback()
        session.refresh(account)
        assert account.is_deleted

        account.name = "Renamed"
        session.flush()
        assert contexts() == ["before_update", "after_update"]

    def test_failed_flush_does_not_leak_restore(self, session):
        account = Account(name="Acme")
        account.soft_delete()
        session.add(account)
        session.commit()
        events.clear()

        account.restore()
        account.name = None
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()
        events.clear()

        account.rating = 4
        session.flush()
        assert contexts() == ["before_update", "after_update"]
        assert account.is_deleted

    def test_is_restore_reads_pending_history(self, session):
        account = Account(name="Acme")
        account.soft_delete()
        session.add(account)
        session.commit()

        assert not is_restore(account)
        account.restore()
        assert is_restore(account)
        account.soft_delete()
        assert not is_restore(account)

    def test_is_restore_ignores_plain_entities(self):
        assert not is_restore(object())

    def test_restore_on_inherited_entity(self, engine):
        listener = TriggerEntityListener(Document, DocumentHandler)
        listener.register()
        events.clear()
        try:
            with Session(engine, expire_on_commit=False) as session:
                invoice = Invoice(title="INV-1")
                invoice.soft_delete()
                session.add(invoice)
                session.commit()
                events.clear()

                invoice.restore()
                session.flush()
        finally:
            listener.unregister()
        assert events == [("after_undelete", ["INV-1"], [])]
