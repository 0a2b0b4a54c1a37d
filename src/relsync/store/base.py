"""Capabilities the orchestrator needs from a state store."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from relsync.actions import Action
    from relsync.store.models import EntityStatus, QueuedAction

Dispatch = Callable[["Action"], Any]


class StoreReader(Protocol):
    """Read-only queries against the store.

    Writes never go through this interface: the orchestrator only changes
    store state by dispatching outcome actions.
    """

    def actions(self, store_key: str, data_key: str, id: Any = None) -> list[QueuedAction]:
        """Queued actions for one entity, or for every entity of the type when *id* is None."""
        ...

    def data_id(self, store_key: str, data_key: str) -> str:
        """Name of the record-identifier field for the type."""
        ...

    def relations(self, store_key: str, data_key: str) -> dict[str, str]:
        """Relation property name -> related data key."""
        ...

    def state(self, store_key: str, data_key: str, id: Any) -> EntityStatus:
        ...

    def data_keys(self, store_key: str) -> list[str]:
        """Registered entity types, in registration order."""
        ...


@runtime_checkable
class Store(StoreReader, Protocol):
    """A store that also accepts outcome actions."""

    def dispatch(self, action: Action) -> Any: ...
