"""Endpoint invoker: calls one remote operation and reports its outcome.

Every irregularity (missing method, non-awaitable result, synchronous raise,
asynchronous failure, deadline) is reported to the store as a failure
notification and then raised, so callers see one uniform failure path.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from relsync.errors import (
    EndpointContractError,
    EndpointMissingError,
    OperationTimeoutError,
    RemoteCallError,
)

if TYPE_CHECKING:
    from relsync.store.base import Dispatch
    from relsync.store.models import ActionKind
    from relsync.sync.notifier import OutcomeNotifiers

log = structlog.get_logger(__name__)


def endpoint_method(endpoints: Any, name: str) -> Any:
    """Look up *name* in an endpoint table given as a mapping or an object."""
    if endpoints is None:
        return None
    if isinstance(endpoints, Mapping):
        return endpoints.get(name)
    return getattr(endpoints, name, None)


async def invoke(
    endpoints: Any,
    kind: ActionKind,
    payload: Any,
    notifiers: OutcomeNotifiers,
    dispatch: Dispatch,
    *,
    timeout: float | None = None,
) -> Any:
    """Call ``endpoints[kind]`` with *payload* and dispatch the outcome."""
    name = kind.value.lower()
    method = endpoint_method(endpoints, name)

    if not callable(method):
        error = EndpointMissingError(details={"method": name})
        log.warning("endpoint_missing", method=name)
        dispatch(notifiers.failed(error))
        raise error

    try:
        pending = method(payload)
    except Exception as exc:
        log.warning("endpoint_failed", method=name, error=str(exc))
        dispatch(notifiers.failed(exc))
        raise RemoteCallError(str(exc), details={"method": name}, cause=exc) from exc

    if not inspect.isawaitable(pending):
        error = EndpointContractError(details={"method": name, "returned": type(pending).__name__})
        log.warning("endpoint_contract_violation", method=name, returned=type(pending).__name__)
        dispatch(notifiers.failed(error))
        raise error

    try:
        if timeout is not None:
            result = await asyncio.wait_for(pending, timeout=timeout)
        else:
            result = await pending
    except TimeoutError as exc:
        if timeout is None:
            log.warning("endpoint_failed", method=name, error=str(exc))
            dispatch(notifiers.failed(exc))
            raise RemoteCallError(str(exc), details={"method": name}, cause=exc) from exc
        error = OperationTimeoutError(
            f"Endpoint '{name}' did not settle within {timeout}s",
            details={"method": name, "timeout": timeout},
            cause=exc,
        )
        log.warning("endpoint_timeout", method=name, timeout=timeout)
        dispatch(notifiers.failed(error))
        raise error from exc
    except Exception as exc:
        log.warning("endpoint_failed", method=name, error=str(exc))
        dispatch(notifiers.failed(exc))
        raise RemoteCallError(str(exc), details={"method": name}, cause=exc) from exc

    dispatch(notifiers.succeeded(result))
    return result
