"""TOML manifests describing entity types and their pending changes.

Example::

    [types.users]
    id_field = "id"

    [types.posts]
    relations = { author = "users" }

    [[pending]]
    type = "users"
    new = true
    entity = { id = "tmp-1", name = "Ann" }

    [[pending]]
    type = "posts"
    new = true
    entity = { id = "tmp-2", author = "tmp-1", title = "Hello" }
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, model_validator

from relsync.config import DEFAULT_STORE_KEY
from relsync.errors import ManifestError
from relsync.store.memory import MemoryStore


class EntityTypeSpec(BaseModel):
    id_field: str = "id"
    relations: dict[str, str] = Field(default_factory=dict)


class PendingEntry(BaseModel):
    type: str
    action: Literal["update", "delete"] = "update"
    new: bool = False
    entity: dict[str, Any] = Field(default_factory=dict)
    id: Any = None


class Manifest(BaseModel):
    types: dict[str, EntityTypeSpec] = Field(default_factory=dict)
    pending: list[PendingEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_pending(self) -> Manifest:
        for entry in self.pending:
            if entry.type not in self.types:
                msg = f"pending entry refers to unknown type '{entry.type}'"
                raise ValueError(msg)
            id_field = self.types[entry.type].id_field
            if entry.action == "update" and id_field not in entry.entity:
                msg = f"pending update for '{entry.type}' has no '{id_field}'"
                raise ValueError(msg)
            if entry.action == "delete" and entry.id is None and id_field not in entry.entity:
                msg = f"pending delete for '{entry.type}' has no identifier"
                raise ValueError(msg)
        return self


def load_manifest(path: Path) -> Manifest:
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ManifestError(f"Cannot read manifest {path}: {exc}", cause=exc) from exc
    try:
        return Manifest.model_validate(raw)
    except ValidationError as exc:
        raise ManifestError(f"Invalid manifest {path}: {exc}", cause=exc) from exc


def build_store(manifest: Manifest, store_key: str = DEFAULT_STORE_KEY) -> MemoryStore:
    """Register the manifest's types in a fresh store and queue its pending entries."""
    store = MemoryStore(store_key)
    for data_key, spec in manifest.types.items():
        store.register(data_key, spec.id_field, spec.relations)
    for entry in manifest.pending:
        if entry.action == "update":
            store.queue_update(entry.type, entry.entity, new=entry.new)
        else:
            id_field = manifest.types[entry.type].id_field
            store.queue_delete(entry.type, entry.id if entry.id is not None else entry.entity[id_field])
    return store
