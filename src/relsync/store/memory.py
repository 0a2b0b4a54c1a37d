"""In-process state store with a reducer for the outcome vocabulary."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from relsync.actions import Action, OutcomeKind, parse_type
from relsync.config import DEFAULT_STORE_KEY
from relsync.store.models import ActionKind, EntityState, EntityStatus, QueuedAction

log = structlog.get_logger(__name__)


@dataclass
class _Entry:
    state: EntityState
    data: dict = field(default_factory=dict)
    queue: list[tuple[str, dict]] = field(default_factory=list)
    updated_id: Any = None
    error: Any = None


@dataclass
class _TypeState:
    id_field: str
    relations: dict[str, str]
    entries: dict[Any, _Entry] = field(default_factory=dict)
    last_error: Any = None


class MemoryStore:
    """Holds entity state per ``(store_key, data_key)`` and reduces outcome actions.

    An entity created locally carries a temporary identifier and the ``NEW``
    state.  When its update succeeds and the remote side returns a different
    identifier, the temporary entry is kept as ``ID_UPDATED`` (so dependents
    still holding the temporary key can find the replacement) and the record
    is stored again under the new identifier.
    """

    def __init__(self, store_key: str = DEFAULT_STORE_KEY) -> None:
        self.store_key = store_key
        self.dispatched: list[Action] = []
        self._slices: dict[str, dict[str, _TypeState]] = {}

    # -- setup --------------------------------------------------------------

    def register(
        self,
        data_key: str,
        id_field: str = "id",
        relations: dict[str, str] | None = None,
        *,
        store_key: str | None = None,
    ) -> None:
        types = self._slices.setdefault(store_key or self.store_key, {})
        types[data_key] = _TypeState(id_field=id_field, relations=dict(relations or {}))

    def queue_update(self, data_key: str, entity: dict, *, new: bool = False) -> Any:
        """Queue an update for *entity* and return its identifier."""
        type_state = self._type(self.store_key, data_key)
        id_ = entity[type_state.id_field]
        entry = type_state.entries.get(id_)
        if entry is None:
            entry = _Entry(state=EntityState.NEW if new else EntityState.CHANGED)
            type_state.entries[id_] = entry
        elif entry.state is not EntityState.NEW:
            entry.state = EntityState.NEW if new else EntityState.CHANGED
        entry.data.update(entity)
        entry.queue.append((ActionKind.UPDATE.value, {"entity": dict(entity), "entityId": id_}))
        return id_

    def queue_delete(self, data_key: str, id: Any) -> None:
        type_state = self._type(self.store_key, data_key)
        entry = type_state.entries.setdefault(id, _Entry(state=EntityState.DELETED))
        entry.state = EntityState.DELETED
        entity = dict(entry.data) or {type_state.id_field: id}
        entry.queue.append((ActionKind.DELETE.value, {"entity": entity, "entityId": id}))

    def queue_action(
        self,
        data_key: str,
        id: Any,
        action: str,
        payload: dict,
        state: EntityState = EntityState.CHANGED,
    ) -> None:
        """Queue a raw action, bypassing the update/delete helpers."""
        type_state = self._type(self.store_key, data_key)
        entry = type_state.entries.setdefault(id, _Entry(state=state))
        entry.state = state
        entry.queue.append((action, payload))

    def record(self, data_key: str, id: Any) -> dict | None:
        entry = self._type(self.store_key, data_key).entries.get(id)
        return dict(entry.data) if entry else None

    # -- StoreReader --------------------------------------------------------

    def actions(self, store_key: str, data_key: str, id: Any = None) -> list[QueuedAction]:
        type_state = self._slices.get(store_key, {}).get(data_key)
        if type_state is None:
            return []
        if id is not None:
            entry = type_state.entries.get(id)
            return self._queued(id, entry) if entry else []
        result: list[QueuedAction] = []
        for entry_id, entry in type_state.entries.items():
            result.extend(self._queued(entry_id, entry))
        return result

    def data_id(self, store_key: str, data_key: str) -> str:
        type_state = self._slices.get(store_key, {}).get(data_key)
        return type_state.id_field if type_state else "id"

    def relations(self, store_key: str, data_key: str) -> dict[str, str]:
        type_state = self._slices.get(store_key, {}).get(data_key)
        return dict(type_state.relations) if type_state else {}

    def state(self, store_key: str, data_key: str, id: Any) -> EntityStatus:
        type_state = self._slices.get(store_key, {}).get(data_key)
        entry = type_state.entries.get(id) if type_state and id is not None else None
        if entry is None:
            return EntityStatus()
        return EntityStatus(state=entry.state, updated_id=entry.updated_id)

    def data_keys(self, store_key: str) -> list[str]:
        return list(self._slices.get(store_key, {}))

    @staticmethod
    def _queued(id_: Any, entry: _Entry) -> list[QueuedAction]:
        return [
            QueuedAction(
                action=action,
                payload=payload,
                state=entry.state,
                updated_id=entry.updated_id,
                entity_id=id_,
            )
            for action, payload in entry.queue
        ]

    # -- reducer ------------------------------------------------------------

    def dispatch(self, action: Action) -> Action:
        self.dispatched.append(action)
        parsed = parse_type(action.type)
        if parsed is None:
            return action
        data_key, suffix = parsed
        type_state = self._slices.get(self.store_key, {}).get(data_key)
        if type_state is None:
            return action

        payload = action.payload
        if suffix == OutcomeKind.UPDATE_SUCCEEDED:
            self._update_succeeded(type_state, payload.get("entityId"), payload.get("entity"))
        elif suffix == OutcomeKind.DELETE_SUCCEEDED:
            type_state.entries.pop(payload.get("entityId"), None)
        elif suffix in (OutcomeKind.UPDATE_FAILED, OutcomeKind.DELETE_FAILED, OutcomeKind.SYNC_FAILED):
            self._failed(type_state, payload.get("entityId"), payload.get("error"))
        elif suffix == OutcomeKind.LOAD_SUCCEEDED:
            self._loaded(type_state, payload.get("data"))
        elif suffix == OutcomeKind.LOAD_FAILED:
            type_state.last_error = payload.get("error")
        return action

    def _update_succeeded(self, type_state: _TypeState, id_: Any, result: Any) -> None:
        entry = type_state.entries.get(id_)
        if entry is None:
            return
        if entry.queue:
            entry.queue.pop(0)
        new_id = result.get(type_state.id_field) if isinstance(result, dict) else None
        if entry.state is EntityState.NEW and new_id is not None and new_id != id_:
            entry.state = EntityState.ID_UPDATED
            entry.updated_id = new_id
            data = {**entry.data, **result}
            type_state.entries[new_id] = _Entry(state=EntityState.SYNCED, data=data)
            log.debug("entity_id_updated", old_id=id_, new_id=new_id)
            return
        if isinstance(result, dict):
            entry.data.update(result)
        if not entry.queue:
            entry.state = EntityState.SYNCED

    @staticmethod
    def _failed(type_state: _TypeState, id_: Any, error: Any) -> None:
        entry = type_state.entries.get(id_)
        if entry is None:
            return
        if entry.queue:
            entry.queue.pop(0)
        entry.state = EntityState.FAILED
        entry.error = error

    @staticmethod
    def _loaded(type_state: _TypeState, data: Any) -> None:
        records = data if isinstance(data, list) else [data]
        for record in records:
            if isinstance(record, dict) and type_state.id_field in record:
                id_ = record[type_state.id_field]
                type_state.entries[id_] = _Entry(state=EntityState.SYNCED, data=dict(record))

    def _type(self, store_key: str, data_key: str) -> _TypeState:
        try:
            return self._slices[store_key][data_key]
        except KeyError:
            msg = f"Entity type not registered: {data_key}"
            raise KeyError(msg) from None
