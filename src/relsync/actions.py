"""Action-type vocabulary shared with the state store.

Every action type has the shape ``@@relsync/<dataKey>/<SUFFIX>``.  Request
suffixes ask the orchestrator to synchronize something; outcome suffixes are
dispatched back once an endpoint call has settled.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

ACTION_PREFIX = "@@relsync/"
DATA_KEY_EXP = re.compile(r"^@@relsync/([^/]+)/([A-Z_]+)$")


@dataclass(frozen=True)
class Action:
    """A store action: a type string plus a free-form payload."""

    type: str
    payload: dict = field(default_factory=dict)


class RequestKind(StrEnum):
    DELETE_SYNC = "DELETE_SYNC"
    UPDATE_SYNC = "UPDATE_SYNC"
    LOAD = "LOAD"
    SYNC_ALL = "SYNC_ALL"


class OutcomeKind(StrEnum):
    LOAD_SUCCEEDED = "LOAD_SUCCEEDED"
    LOAD_FAILED = "LOAD_FAILED"
    UPDATE_SUCCEEDED = "UPDATE_SUCCEEDED"
    UPDATE_FAILED = "UPDATE_FAILED"
    DELETE_SUCCEEDED = "DELETE_SUCCEEDED"
    DELETE_FAILED = "DELETE_FAILED"
    SYNC_FAILED = "SYNC_FAILED"


def action_type(data_key: str, suffix: str) -> str:
    return f"{ACTION_PREFIX}{data_key}/{suffix}"


def parse_type(type_: str) -> tuple[str, str] | None:
    """Split an action type into ``(data_key, suffix)``; None for foreign types."""
    if not type_.startswith(ACTION_PREFIX):
        return None
    match = DATA_KEY_EXP.match(type_)
    if match is None:
        return None
    return match.group(1), match.group(2)


def classify(type_: str) -> tuple[str, RequestKind] | None:
    """Return ``(data_key, kind)`` for a sync request, None for anything else."""
    parsed = parse_type(type_)
    if parsed is None:
        return None
    data_key, suffix = parsed
    try:
        return data_key, RequestKind(suffix)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Request builders
# ---------------------------------------------------------------------------


def update_sync(data_key: str, entity: dict | None = None, entity_id: Any = None) -> Action:
    return Action(action_type(data_key, RequestKind.UPDATE_SYNC), _entity_payload(entity, entity_id))


def delete_sync(data_key: str, entity: dict | None = None, entity_id: Any = None) -> Action:
    return Action(action_type(data_key, RequestKind.DELETE_SYNC), _entity_payload(entity, entity_id))


def load(data_key: str, payload: dict | None = None) -> Action:
    return Action(action_type(data_key, RequestKind.LOAD), dict(payload or {}))


def sync_all(data_key: str) -> Action:
    return Action(action_type(data_key, RequestKind.SYNC_ALL))


def _entity_payload(entity: dict | None, entity_id: Any) -> dict:
    payload: dict = {}
    if entity is not None:
        payload["entity"] = dict(entity)
    if entity_id is not None:
        payload["entityId"] = entity_id
    return payload


# ---------------------------------------------------------------------------
# Outcome action creators
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionCreators:
    """Outcome action creators bound to one entity type.

    The positional order of each creator is part of the contract with the
    store's handlers and must not change.
    """

    data_key: str

    def _make(self, kind: OutcomeKind, **payload: Any) -> Action:
        return Action(action_type(self.data_key, kind), payload)

    def load_succeeded(self, data: Any) -> Action:
        return self._make(OutcomeKind.LOAD_SUCCEEDED, data=data)

    def load_failed(self, error: Any) -> Action:
        return self._make(OutcomeKind.LOAD_FAILED, error=error)

    def update_succeeded(self, payload: Any, id: Any) -> Action:
        return self._make(OutcomeKind.UPDATE_SUCCEEDED, entity=payload, entityId=id)

    def update_failed(self, id: Any, payload: Any) -> Action:
        return self._make(OutcomeKind.UPDATE_FAILED, entityId=id, error=payload)

    def delete_succeeded(self, id: Any, payload: Any) -> Action:
        return self._make(OutcomeKind.DELETE_SUCCEEDED, entityId=id, result=payload)

    def delete_failed(self, id: Any, payload: Any) -> Action:
        return self._make(OutcomeKind.DELETE_FAILED, entityId=id, error=payload)

    def sync_failed(self, id: Any, error: Any) -> Action:
        return self._make(OutcomeKind.SYNC_FAILED, entityId=id, error=error)


def action_creators(data_key: str) -> ActionCreators:
    return ActionCreators(data_key)
