"""Sync module: dependency resolver, scheduler, endpoint invoker and interceptor."""

from relsync.sync.interceptor import SyncInterceptor
from relsync.sync.invoker import invoke
from relsync.sync.resolver import (
    DependencyGraph,
    Operation,
    OperationSet,
    SyncLevel,
    TypeOperations,
    plan_levels,
    resolve,
)
from relsync.sync.scheduler import OperationOutcome, PreparedCall, SyncReport, SyncScheduler

__all__ = [
    "DependencyGraph",
    "Operation",
    "OperationOutcome",
    "OperationSet",
    "PreparedCall",
    "SyncInterceptor",
    "SyncLevel",
    "SyncReport",
    "SyncScheduler",
    "TypeOperations",
    "invoke",
    "plan_levels",
    "resolve",
]
