"""Dispatch interceptor: turns sync request actions into scheduled operations."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from relsync.actions import Action, RequestKind, classify
from relsync.config import DEFAULT_STORE_KEY
from relsync.store.base import Store
from relsync.sync.resolver import Operation, OperationSet, TypeOperations
from relsync.sync.scheduler import SyncReport, SyncScheduler

if TYPE_CHECKING:
    from relsync.config import AppConfig
    from relsync.store.base import Dispatch, StoreReader

log = structlog.get_logger(__name__)


class SyncInterceptor:
    """Watches dispatched actions and synchronizes the entities they name.

    Only the ``@@relsync/<dataKey>/<SUFFIX>`` request types are acted on;
    every other action passes through untouched.
    """

    def __init__(
        self,
        store: StoreReader,
        endpoints: Mapping[str, Any],
        *,
        dispatch: Dispatch | None = None,
        store_key: str = DEFAULT_STORE_KEY,
        operation_timeout: float | None = None,
    ) -> None:
        if dispatch is None:
            if not isinstance(store, Store):
                msg = "store has no dispatch(); pass dispatch= explicitly"
                raise TypeError(msg)
            dispatch = store.dispatch
        self._store = store
        self._store_key = store_key
        self.scheduler = SyncScheduler(
            store,
            dispatch,
            endpoints,
            store_key=store_key,
            operation_timeout=operation_timeout,
        )

    @classmethod
    def from_config(
        cls,
        store: StoreReader,
        endpoints: Mapping[str, Any],
        config: AppConfig,
        *,
        dispatch: Dispatch | None = None,
    ) -> SyncInterceptor:
        return cls(
            store,
            endpoints,
            dispatch=dispatch,
            store_key=config.sync.store_key,
            operation_timeout=config.sync.operation_timeout,
        )

    def wrap(self, next_dispatch: Callable[[Action], Any]) -> Callable[[Action], Awaitable[SyncReport | None]]:
        """Return a dispatch function that forwards first, then synchronizes."""

        async def dispatch(action: Action) -> SyncReport | None:
            next_dispatch(action)
            return await self.handle(action)

        return dispatch

    async def handle(self, action: Action) -> SyncReport | None:
        classified = classify(action.type)
        if classified is None:
            return None
        data_key, kind = classified

        record_key = self._store.data_id(self._store_key, data_key)
        relations = self._store.relations(self._store_key, data_key)
        payload = action.payload or {}

        if kind in (RequestKind.UPDATE_SYNC, RequestKind.DELETE_SYNC):
            entity = payload.get("entity") or {}
            entity_id = payload.get("entityId")
            if entity_id is None:
                entity_id = entity.get(record_key)
            operations = [Operation(data_key, record_key, id=entity_id, relations=relations)]
        elif kind is RequestKind.LOAD:
            operations = [Operation(data_key, record_key, load_payload=dict(payload), relations=relations)]
        else:
            operations = self._pending_operations(data_key, record_key, relations)

        log.info("sync_requested", data_key=data_key, kind=kind.value, operations=len(operations))
        return await self.scheduler.sync({data_key: TypeOperations(operations, relations)})

    def pending_operation_set(self, data_keys: Iterable[str] | None = None) -> OperationSet:
        """Collect every queued action of *data_keys* (default: all types) into one set.

        Types with nothing queued are kept so their relations still order the
        types around them.
        """
        keys = list(data_keys) if data_keys is not None else self._store.data_keys(self._store_key)
        operation_set: OperationSet = {}
        for data_key in keys:
            record_key = self._store.data_id(self._store_key, data_key)
            relations = self._store.relations(self._store_key, data_key)
            operation_set[data_key] = TypeOperations(
                self._pending_operations(data_key, record_key, relations),
                relations,
            )
        return operation_set

    async def sync_pending(self, data_keys: Iterable[str] | None = None) -> SyncReport:
        operation_set = self.pending_operation_set(data_keys)
        log.info("sync_pending_requested", data_keys=list(operation_set))
        return await self.scheduler.sync(operation_set)

    def _pending_operations(self, data_key: str, record_key: str, relations: dict[str, str]) -> list[Operation]:
        ids: list[Any] = []
        for queued in self._store.actions(self._store_key, data_key):
            if queued.entity_id not in ids:
                ids.append(queued.entity_id)
        return [Operation(data_key, record_key, id=id_, relations=relations) for id_ in ids]
