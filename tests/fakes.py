"""
In-memory stand-in for the remote record store, used by the async tests.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from courseadmin.errors import RemoteReadError, RemoteWriteError
from courseadmin.model import ALL_KINDS, EntityKind, Record
from courseadmin.references import LocatorCodec

BASE_URL = "https://records.example.test/rest"
APP_IDS = {
    EntityKind.COURSE: "app-kurse",
    EntityKind.INSTRUCTOR: "app-dozenten",
    EntityKind.PARTICIPANT: "app-teilnehmer",
    EntityKind.ROOM: "app-raeume",
    EntityKind.ENROLLMENT: "app-anmeldungen",
}


def rid(n: int) -> str:
    """24-hex record id, the format the store assigns."""
    return f"{n:024x}"


def make_codec() -> LocatorCodec:
    return LocatorCodec(BASE_URL, APP_IDS)


class FakeCollaborator:
    def __init__(self) -> None:
        self.codec = make_codec()
        self.data: dict[EntityKind, dict[str, dict[str, Any]]] = {k: {} for k in ALL_KINDS}
        self.fail_fetch: set[EntityKind] = set()
        self.fail_writes = False
        self.write_gate: Optional[asyncio.Event] = None
        self.calls: list[tuple[Any, ...]] = []
        self._next = 1

    def add(self, kind: EntityKind, **fields: Any) -> str:
        record_id = rid(self._next)
        self._next += 1
        self.data[kind][record_id] = dict(fields)
        return record_id

    def ref(self, kind: EntityKind, record_id: str) -> str:
        return self.codec.encode(kind, record_id)

    async def fetch_records(self, kind: EntityKind) -> list[Record]:
        self.calls.append(("fetch", kind))
        if kind in self.fail_fetch:
            raise RemoteReadError(f"fetch {kind.cli_name} failed")
        return [Record(record_id=k, fields=dict(v)) for k, v in self.data[kind].items()]

    async def _before_write(self, *call: Any) -> None:
        self.calls.append(call)
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes:
            raise RemoteWriteError("rejected by store")

    async def create_record(self, kind: EntityKind, fields: dict[str, Any]) -> Record:
        await self._before_write("create", kind, dict(fields))
        record_id = self.add(kind, **fields)
        return Record(record_id=record_id, fields=dict(fields))

    async def update_record(self, kind: EntityKind, record_id: str, fields: dict[str, Any]) -> Record:
        await self._before_write("update", kind, record_id, dict(fields))
        if record_id not in self.data[kind]:
            raise RemoteWriteError(f"no such record {record_id}")
        self.data[kind][record_id].update(fields)
        return Record(record_id=record_id, fields=dict(self.data[kind][record_id]))

    async def delete_record(self, kind: EntityKind, record_id: str) -> None:
        await self._before_write("delete", kind, record_id)
        if self.data[kind].pop(record_id, None) is None:
            raise RemoteWriteError(f"no such record {record_id}")

    def writes(self) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] != "fetch"]
