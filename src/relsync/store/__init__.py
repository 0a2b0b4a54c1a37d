"""State-store collaborator: query protocol, models and an in-memory store."""

from relsync.store.base import Dispatch, Store, StoreReader
from relsync.store.memory import MemoryStore
from relsync.store.models import ActionKind, EntityState, EntityStatus, QueuedAction

__all__ = [
    "ActionKind",
    "Dispatch",
    "EntityState",
    "EntityStatus",
    "MemoryStore",
    "QueuedAction",
    "Store",
    "StoreReader",
]
