"""Outcome notifications: bind an entity identifier into the action creators."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from relsync.actions import Action, ActionCreators
from relsync.store.models import ActionKind

Notify = Callable[[Any], Action]


def update_succeeded(id: Any, creator: Callable[[Any, Any], Action]) -> Notify:
    return lambda payload: creator(payload, id)


def update_failed(id: Any, creator: Callable[[Any, Any], Action]) -> Notify:
    return lambda payload: creator(id, payload)


def delete_succeeded(id: Any, creator: Callable[[Any, Any], Action]) -> Notify:
    return lambda payload: creator(id, payload)


def delete_failed(id: Any, creator: Callable[[Any, Any], Action]) -> Notify:
    return lambda payload: creator(id, payload)


@dataclass(frozen=True)
class OutcomeNotifiers:
    succeeded: Notify
    failed: Notify


def notifiers_for(kind: ActionKind, id: Any, creators: ActionCreators) -> OutcomeNotifiers:
    """Pick the success/failure builders for one operation.

    Loads have no single target identifier, so their creators are used as-is.
    """
    if kind is ActionKind.UPDATE:
        return OutcomeNotifiers(
            succeeded=update_succeeded(id, creators.update_succeeded),
            failed=update_failed(id, creators.update_failed),
        )
    if kind is ActionKind.DELETE:
        return OutcomeNotifiers(
            succeeded=delete_succeeded(id, creators.delete_succeeded),
            failed=delete_failed(id, creators.delete_failed),
        )
    return OutcomeNotifiers(succeeded=creators.load_succeeded, failed=creators.load_failed)
