"""Sync scheduler: runs resolved operations level by level.

All operations of a level are launched together and joined with
``asyncio.gather(..., return_exceptions=True)``; the next level starts only
once every operation of the current one has settled.  That barrier is what
makes a parent's freshly assigned identifier visible to its children.
Failures never cancel siblings or later levels.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from relsync.actions import action_creators
from relsync.config import DEFAULT_STORE_KEY
from relsync.errors import NoPendingActionError, UnhandledActionError
from relsync.store.models import ActionKind, EntityState, QueuedAction
from relsync.sync.invoker import invoke
from relsync.sync.notifier import notifiers_for
from relsync.sync.resolver import Operation, OperationSet, SyncLevel, plan_levels

if TYPE_CHECKING:
    from relsync.store.base import Dispatch, StoreReader

log = structlog.get_logger(__name__)


@dataclass
class PreparedCall:
    """Everything decided about an operation before its endpoint is called."""

    kind: ActionKind
    id: Any
    payload: Any
    state: EntityState | None = None
    substituted: dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationOutcome:
    data_key: str
    id: Any
    level: int
    ok: bool
    result: Any = None
    error: BaseException | None = None


@dataclass
class SyncReport:
    levels: int = 0
    outcomes: list[OperationOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    def failures(self) -> list[OperationOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_json(self) -> str:
        return json.dumps(
            {
                "levels": self.levels,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "errors": [
                    {"data_key": o.data_key, "id": o.id, "error": str(o.error)} for o in self.failures()
                ],
            },
            default=str,
        )


class SyncScheduler:
    """Executes operations against per-type endpoint tables.

    Store access is limited to *store* (queries) and *dispatch* (outcome
    notifications), both passed in explicitly.
    """

    def __init__(
        self,
        store: StoreReader,
        dispatch: Dispatch,
        endpoints: Mapping[str, Any],
        *,
        store_key: str = DEFAULT_STORE_KEY,
        operation_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._dispatch = dispatch
        self._endpoints = endpoints
        self._store_key = store_key
        self._timeout = operation_timeout

    # -- single operation ---------------------------------------------------

    def _queued_action(self, op: Operation) -> QueuedAction:
        if op.load_payload is not None:
            return QueuedAction(action=ActionKind.LOAD.value, payload=op.load_payload)
        pending: list[QueuedAction] = []
        if op.id is not None:
            # entity_id is optional for stores that do not tag queued actions
            pending = [
                queued
                for queued in self._store.actions(self._store_key, op.data_key, op.id)
                if queued.entity_id is None or queued.entity_id == op.id
            ]
        if not pending:
            raise NoPendingActionError(
                f"No pending action for {op.data_key} {op.id!r}",
                details={"data_key": op.data_key, "id": op.id},
            )
        return pending[0]

    def prepare(self, op: Operation) -> PreparedCall:
        """Decide the operation kind and assemble the outgoing payload."""
        queued = self._queued_action(op)
        try:
            kind = ActionKind(queued.action)
        except ValueError:
            raise UnhandledActionError(
                details={"data_key": op.data_key, "id": op.id, "action": queued.action},
            ) from None

        payload = queued.payload or {}
        entity = dict(payload.get("entity") or {})
        current_id = entity.pop(op.record_key, None)
        if current_id is not None:
            id_ = current_id
        elif payload.get("entityId") is not None:
            id_ = payload["entityId"]
        else:
            id_ = op.id

        if kind is ActionKind.LOAD:
            return PreparedCall(kind=kind, id=id_, payload=payload, state=queued.state)

        if queued.state != EntityState.NEW:
            entity[op.record_key] = id_

        # deletes send the stored entity as is
        if kind is ActionKind.DELETE:
            return PreparedCall(kind=kind, id=id_, payload=entity, state=queued.state)

        substituted: dict[str, Any] = {}
        for prop, foreign_key in op.relations.items():
            status = self._store.state(self._store_key, foreign_key, entity.get(prop))
            if status.state == EntityState.ID_UPDATED:
                substituted[prop] = status.updated_id

        if substituted:
            log.debug("foreign_keys_substituted", data_key=op.data_key, id=id_, substituted=substituted)
        return PreparedCall(
            kind=kind,
            id=id_,
            payload={**entity, **substituted},
            state=queued.state,
            substituted=substituted,
        )

    async def run_operation(self, op: Operation) -> Any:
        """Prepare and invoke one operation; every failure is also dispatched."""
        creators = action_creators(op.data_key)
        try:
            call = self.prepare(op)
        except UnhandledActionError as exc:
            log.error("operation_unhandled", data_key=op.data_key, id=op.id, error=str(exc))
            self._dispatch(creators.sync_failed(op.id, exc))
            raise

        log.info("operation_started", data_key=op.data_key, id=call.id, kind=call.kind.value)
        return await invoke(
            self._endpoints.get(op.data_key),
            call.kind,
            call.payload,
            notifiers_for(call.kind, call.id, creators),
            self._dispatch,
            timeout=self._timeout,
        )

    # -- batches ------------------------------------------------------------

    async def run(self, levels: Iterable[SyncLevel | Iterable[Operation]]) -> SyncReport:
        """Run *levels* in order, joining each one before starting the next."""
        report = SyncReport()
        failed_types: set[str] = set()
        structlog.contextvars.bind_contextvars(sync_run=uuid.uuid4().hex[:8])
        try:
            for index, level in enumerate(levels):
                operations = level.operations if isinstance(level, SyncLevel) else list(level)
                report.levels += 1
                for op in operations:
                    failed_deps = sorted(set(op.relations.values()) & failed_types)
                    if failed_deps:
                        log.warning(
                            "dependency_failed_continuing",
                            data_key=op.data_key,
                            id=op.id,
                            failed=failed_deps,
                        )

                results = await asyncio.gather(
                    *(self.run_operation(op) for op in operations),
                    return_exceptions=True,
                )

                for op, result in zip(operations, results, strict=True):
                    if isinstance(result, BaseException):
                        failed_types.add(op.data_key)
                        report.outcomes.append(
                            OperationOutcome(op.data_key, op.id, index, ok=False, error=result)
                        )
                    else:
                        report.outcomes.append(OperationOutcome(op.data_key, op.id, index, ok=True, result=result))
                log.info(
                    "level_settled",
                    level=index,
                    operations=len(operations),
                    failed=sum(1 for r in results if isinstance(r, BaseException)),
                )
            log.info("sync_run_completed", stats=report.to_json())
            return report
        finally:
            structlog.contextvars.unbind_contextvars("sync_run")

    async def sync(self, operation_set: OperationSet) -> SyncReport:
        """Order *operation_set* and run it.

        Raises:
            CircularDependencyError: before any endpoint is called.
        """
        levels = plan_levels(operation_set)
        return await self.run(levels)
