"""
REST client for the remote record store (LivingApps-style API).

Endpoints, per app (one app = one entity kind):

    GET    {base}/apps/{app_id}/records            -> {record_id: {"fields": {...}, ...}, ...}
    POST   {base}/apps/{app_id}/records            body {"fields": {...}}
    PATCH  {base}/apps/{app_id}/records/{id}       body {"fields": {...}}  (partial)
    DELETE {base}/apps/{app_id}/records/{id}

The HTTP calls are plain blocking `requests` calls; the async methods run them
in a worker thread so the five initial fetches can overlap.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import requests

from courseadmin.config import Settings
from courseadmin.errors import RemoteReadError, RemoteWriteError
from courseadmin.model import EntityKind, Record
from courseadmin.references import LocatorCodec

logger = logging.getLogger(__name__)


def _to_record(record_id: str, raw: Any) -> Record:
    if not isinstance(raw, dict):
        return Record(record_id=record_id)
    fields = raw.get("fields")
    return Record(
        record_id=record_id,
        fields=dict(fields) if isinstance(fields, dict) else {},
        created_at=raw.get("createdat"),
        updated_at=raw.get("updatedat"),
    )


def parse_records(data: Any) -> list[Record]:
    """
    Convert the store's {id: record} mapping into a list of Records.

    A list of records carrying their own "id" is accepted as well.
    """
    if isinstance(data, dict):
        return [_to_record(str(rid), raw) for rid, raw in data.items()]
    if isinstance(data, list):
        out: list[Record] = []
        for raw in data:
            if isinstance(raw, dict) and raw.get("id"):
                out.append(_to_record(str(raw["id"]), raw))
        return out
    return []


def _parse_single(data: Any, fallback_id: str = "") -> Record:
    if isinstance(data, dict):
        if data.get("id"):
            return _to_record(str(data["id"]), data)
        if "fields" in data:
            return _to_record(fallback_id, data)
        # {record_id: {...}}
        if len(data) == 1:
            rid, raw = next(iter(data.items()))
            if isinstance(raw, dict):
                return _to_record(str(rid), raw)
    return Record(record_id=fallback_id)


class LivingAppsClient:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.timeout = settings.timeout
        self.codec = LocatorCodec(self.base_url, settings.app_ids)

    # -----------------------------------------------------------------------
    # HTTP
    # -----------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        return headers

    def _records_url(self, kind: EntityKind, record_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/apps/{self.settings.app_id(kind)}/records"
        return f"{url}/{record_id}" if record_id else url

    def _request(self, method: str, url: str, body: Optional[dict[str, Any]] = None) -> Any:
        logger.debug("%s %s", method, url)
        resp = requests.request(method, url, headers=self._headers(), json=body, timeout=self.timeout)
        resp.raise_for_status()
        if method == "DELETE" or not resp.content:
            return None
        return resp.json()

    def _read(self, url: str) -> Any:
        try:
            return self._request("GET", url)
        except (requests.RequestException, ValueError) as exc:
            raise RemoteReadError(f"GET {url} failed: {exc}") from exc

    def _write(self, method: str, url: str, body: Optional[dict[str, Any]] = None) -> Any:
        try:
            return self._request(method, url, body)
        except (requests.RequestException, ValueError) as exc:
            raise RemoteWriteError(f"{method} {url} failed: {exc}") from exc

    # -----------------------------------------------------------------------
    # Blocking API
    # -----------------------------------------------------------------------

    def get_records(self, kind: EntityKind) -> list[Record]:
        return parse_records(self._read(self._records_url(kind)))

    def create_entry(self, kind: EntityKind, fields: dict[str, Any]) -> Record:
        data = self._write("POST", self._records_url(kind), {"fields": fields})
        return _parse_single(data)

    def update_entry(self, kind: EntityKind, record_id: str, fields: dict[str, Any]) -> Record:
        data = self._write("PATCH", self._records_url(kind, record_id), {"fields": fields})
        return _parse_single(data, fallback_id=record_id)

    def delete_entry(self, kind: EntityKind, record_id: str) -> None:
        self._write("DELETE", self._records_url(kind, record_id))

    # -----------------------------------------------------------------------
    # Async API (used by the store and the orchestrator)
    # -----------------------------------------------------------------------

    async def fetch_records(self, kind: EntityKind) -> list[Record]:
        return await asyncio.to_thread(self.get_records, kind)

    async def create_record(self, kind: EntityKind, fields: dict[str, Any]) -> Record:
        return await asyncio.to_thread(self.create_entry, kind, fields)

    async def update_record(self, kind: EntityKind, record_id: str, fields: dict[str, Any]) -> Record:
        return await asyncio.to_thread(self.update_entry, kind, record_id, fields)

    async def delete_record(self, kind: EntityKind, record_id: str) -> None:
        await asyncio.to_thread(self.delete_entry, kind, record_id)
