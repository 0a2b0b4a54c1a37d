"""Pydantic models describing what the state store reports about entities."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ActionKind(StrEnum):
    """Remote operation a queued action resolves to."""

    LOAD = "LOAD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EntityState(StrEnum):
    """Where an entity instance sits in its save lifecycle."""

    NEW = "NEW"
    CHANGED = "CHANGED"
    DELETED = "DELETED"
    SYNCED = "SYNCED"
    ID_UPDATED = "ID_UPDATED"
    FAILED = "FAILED"


class QueuedAction(BaseModel):
    """A pending action the store holds for one entity instance.

    ``action`` is kept as the raw string the store recorded; the scheduler
    decides whether it maps onto an :class:`ActionKind`.
    """

    action: str
    payload: dict = Field(default_factory=dict)
    state: EntityState | None = None
    updated_id: Any = None
    entity_id: Any = None


class EntityStatus(BaseModel):
    """Lifecycle state of a single entity instance."""

    state: EntityState | None = None
    updated_id: Any = None
