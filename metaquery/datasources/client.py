from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from metaquery.datasources.models import DsInfoQueryRequest


logger = logging.getLogger(__name__)


class DataSourceDirectory(Protocol):
    """RPC collaborator that owns data source records.

    ``query`` returns the raw response object; shape validation is the resolver's job.
    """

    def query(self, request: DsInfoQueryRequest) -> Any: ...


class HttpDataSourceDirectory:
    """Directory client speaking JSON over HTTP to the data source manager."""

    def __init__(self, base_url: str, *, timeout_s: float = 10.0, client: Optional[httpx.Client] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout_s)

    def query(self, request: DsInfoQueryRequest) -> Any:
        url = f"{self.base_url}/info/query"
        logger.debug("Querying data source directory %s (id=%s, name=%s, system=%s, env=%s)", url, request.id, request.name, request.system, request.env_id)
        resp = self._client.post(url, json=request.to_payload())
        resp.raise_for_status()
        body = resp.json()
        # Gateway responses wrap the payload as {"status": 0, "data": {...}}
        if isinstance(body, dict) and isinstance(body.get("data"), dict) and "dsType" not in body:
            return body["data"]
        return body

    def close(self) -> None:
        self._client.close()
