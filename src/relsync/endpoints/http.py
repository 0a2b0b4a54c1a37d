"""REST endpoint tables backed by ``httpx.AsyncClient``.

Per resource:
- GET /<resource> (load all) or GET /<resource>/<id> (load one)
- POST /<resource> (create, no identifier yet)
- PUT /<resource>/<id> (update)
- DELETE /<resource>/<id> (delete)

Errors are not retried; a non-2xx response raises ``httpx.HTTPStatusError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)


class RestEndpoints:
    """load/update/delete endpoints for one REST resource."""

    def __init__(self, client: httpx.AsyncClient, resource: str, *, id_field: str = "id") -> None:
        self._client = client
        self._resource = resource.strip("/")
        self._id_field = id_field

    def _url(self, id_: Any = None) -> str:
        if id_ is None:
            return f"/{self._resource}"
        return f"/{self._resource}/{id_}"

    @staticmethod
    def _body(resp: httpx.Response, fallback: Any) -> Any:
        resp.raise_for_status()
        if not resp.content:
            return fallback
        return resp.json()

    async def load(self, payload: dict) -> Any:
        entity_id = payload.get("entityId")
        resp = await self._client.get(self._url(entity_id), params=payload.get("params"))
        log.debug("rest_load", resource=self._resource, status=resp.status_code)
        return self._body(resp, [])

    async def update(self, payload: dict) -> Any:
        id_ = payload.get(self._id_field)
        if id_ is None:
            resp = await self._client.post(self._url(), json=payload)
        else:
            resp = await self._client.put(self._url(id_), json=payload)
        log.debug("rest_update", resource=self._resource, id=id_, status=resp.status_code)
        return self._body(resp, payload)

    async def delete(self, payload: dict) -> Any:
        id_ = payload[self._id_field]
        resp = await self._client.delete(self._url(id_))
        log.debug("rest_delete", resource=self._resource, id=id_, status=resp.status_code)
        return self._body(resp, {})


def rest_endpoints(
    client: httpx.AsyncClient,
    data_keys: Iterable[str],
    id_fields: Mapping[str, str] | None = None,
) -> dict[str, RestEndpoints]:
    """Build an endpoint table mapping each data key to its REST resource."""
    id_fields = id_fields or {}
    return {key: RestEndpoints(client, key, id_field=id_fields.get(key, "id")) for key in data_keys}
