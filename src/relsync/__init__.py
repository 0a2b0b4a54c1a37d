"""relsync: relation-aware entity synchronization between a state store and remote endpoints."""

from relsync.actions import Action, action_creators
from relsync.errors import (
    CircularDependencyError,
    ConfigurationError,
    EndpointContractError,
    EndpointMissingError,
    NoPendingActionError,
    OperationTimeoutError,
    RelsyncError,
    RemoteCallError,
    UnhandledActionError,
)
from relsync.store import EntityState, MemoryStore
from relsync.sync import SyncInterceptor, SyncReport, SyncScheduler, plan_levels, resolve

__version__ = "0.1.0"

__all__ = [
    "Action",
    "CircularDependencyError",
    "ConfigurationError",
    "EndpointContractError",
    "EndpointMissingError",
    "EntityState",
    "MemoryStore",
    "NoPendingActionError",
    "OperationTimeoutError",
    "RelsyncError",
    "RemoteCallError",
    "SyncInterceptor",
    "SyncReport",
    "SyncScheduler",
    "UnhandledActionError",
    "action_creators",
    "plan_levels",
    "resolve",
]
