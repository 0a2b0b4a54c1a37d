"""Dependency ordering of entity types by their declared relations.

An entity type that references another type (a foreign key) must be
synchronized after it, so the referenced record exists remotely and its
final identifier is known.  Ordering is a depth-first post-order walk over
the relation graph; a relation back onto the current ancestor chain is a
cycle and aborts the batch before any endpoint is called.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from relsync.errors import CircularDependencyError

log = structlog.get_logger(__name__)


@dataclass
class Operation:
    """One pending synchronization of one entity instance."""

    data_key: str
    record_key: str = "id"
    id: Any = None
    load_payload: dict | None = None
    relations: dict[str, str] = field(default_factory=dict)


@dataclass
class TypeOperations:
    """Pending operations of one entity type plus the type's relations."""

    operations: list[Operation] = field(default_factory=list)
    relations: dict[str, str] = field(default_factory=dict)


# Insertion order is the registration order and breaks ties in the result.
OperationSet = dict[str, TypeOperations]


@dataclass
class SyncLevel:
    """Entity types whose dependencies were all scheduled in earlier levels."""

    index: int
    data_keys: list[str]
    operations: list[Operation]


class DependencyGraph:
    """Explicit adjacency of entity types: data key -> [(relation, target)]."""

    def __init__(self, edges: dict[str, list[tuple[str, str]]]) -> None:
        self._edges = edges

    @classmethod
    def from_operation_set(cls, operation_set: OperationSet) -> DependencyGraph:
        edges: dict[str, list[tuple[str, str]]] = {}
        for data_key, type_ops in operation_set.items():
            edges[data_key] = list(type_ops.relations.items())
        return cls(edges)

    def dependencies(self, data_key: str) -> list[str]:
        return [target for _relation, target in self._edges.get(data_key, ())]

    def order(self) -> list[str]:
        """Return every entity type after all the types it depends on.

        Raises:
            CircularDependencyError: if a relation points back onto the
                ancestor chain of the type declaring it.
        """
        ordered: list[str] = []
        visited: set[str] = set()

        def visit(data_key: str, ancestors: list[str]) -> None:
            chain = [*ancestors, data_key]
            for relation, target in self._edges.get(data_key, ()):
                if target in chain:
                    raise CircularDependencyError(relation, target, data_key, [*chain, target])
                if target in visited:
                    continue
                visit(target, chain)
            visited.add(data_key)
            ordered.append(data_key)

        for data_key in self._edges:
            if data_key not in visited:
                visit(data_key, [])
        return ordered

    def validate(self) -> None:
        self.order()


def resolve(operation_set: OperationSet) -> list[list[Operation]]:
    """Return the operation lists of *operation_set* in dependency order.

    Types that are only referenced, or that have nothing pending, contribute
    no list.
    """
    order = DependencyGraph.from_operation_set(operation_set).order()
    return [
        list(operation_set[data_key].operations)
        for data_key in order
        if data_key in operation_set and operation_set[data_key].operations
    ]


def plan_levels(operation_set: OperationSet) -> list[SyncLevel]:
    """Group the resolved types into Sync Levels.

    A type sits one level above the highest dependency that has pending
    operations.  Dependencies with nothing pending do not add a level of
    their own.
    """
    graph = DependencyGraph.from_operation_set(operation_set)
    order = graph.order()
    pending = {data_key for data_key, type_ops in operation_set.items() if type_ops.operations}

    depth: dict[str, int] = {}
    for data_key in order:
        depth[data_key] = max(
            (depth[dep] + (1 if dep in pending else 0) for dep in graph.dependencies(data_key)),
            default=0,
        )

    grouped: dict[int, list[str]] = {}
    for data_key in order:
        if data_key in pending:
            grouped.setdefault(depth[data_key], []).append(data_key)

    levels: list[SyncLevel] = []
    for index, key in enumerate(sorted(grouped)):
        data_keys = grouped[key]
        levels.append(
            SyncLevel(
                index=index,
                data_keys=data_keys,
                operations=[op for data_key in data_keys for op in operation_set[data_key].operations],
            )
        )
    log.debug("levels_planned", levels=[level.data_keys for level in levels])
    return levels
