"""SQLAlchemy integration — mapper events as trigger invocations."""

from triggerfly.trigger.sqlalchemy.entity import Base, BaseEntity, SoftDeleteMixin
from triggerfly.trigger.sqlalchemy.listener import TriggerEntityListener, is_restore, snapshot

__all__ = ["Base", "BaseEntity", "SoftDeleteMixin", "TriggerEntityListener", "is_restore", "snapshot"]
