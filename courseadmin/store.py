"""
In-memory entity store.

Holds one snapshot (an immutable tuple of records) per entity kind.
Snapshots are only ever replaced as a whole:

- load_all() fetches all five kinds concurrently and installs them together,
  or installs nothing if any fetch fails
- reload(kind) refetches one kind after a mutation

There is no incremental patching. After a write the affected collection is
exactly what the remote store returns next.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

from courseadmin.errors import LoadFailure, RemoteError
from courseadmin.model import ALL_KINDS, EntityKind, Record
from courseadmin.references import LocatorCodec

logger = logging.getLogger(__name__)


class Collaborator(Protocol):
    """
    What the core needs from the remote store client.
    """

    codec: LocatorCodec

    async def fetch_records(self, kind: EntityKind) -> list[Record]: ...

    async def create_record(self, kind: EntityKind, fields: dict[str, Any]) -> Record: ...

    async def update_record(self, kind: EntityKind, record_id: str, fields: dict[str, Any]) -> Record: ...

    async def delete_record(self, kind: EntityKind, record_id: str) -> None: ...


@dataclass(frozen=True)
class Snapshot:
    """
    A consistent read view over all five collections.
    """

    collections: dict[EntityKind, tuple[Record, ...]] = field(default_factory=dict)

    def records(self, kind: EntityKind) -> tuple[Record, ...]:
        return self.collections.get(kind, ())

    @property
    def courses(self) -> tuple[Record, ...]:
        return self.records(EntityKind.COURSE)

    @property
    def instructors(self) -> tuple[Record, ...]:
        return self.records(EntityKind.INSTRUCTOR)

    @property
    def participants(self) -> tuple[Record, ...]:
        return self.records(EntityKind.PARTICIPANT)

    @property
    def rooms(self) -> tuple[Record, ...]:
        return self.records(EntityKind.ROOM)

    @property
    def enrollments(self) -> tuple[Record, ...]:
        return self.records(EntityKind.ENROLLMENT)

    def find(self, kind: EntityKind, record_id: str) -> Optional[Record]:
        for r in self.records(kind):
            if r.record_id == record_id:
                return r
        return None


def _as_collection(kind: EntityKind, records: Sequence[Record]) -> tuple[Record, ...]:
    seen: set[str] = set()
    for r in records:
        if r.record_id in seen:
            raise LoadFailure(f"Duplicate record id {r.record_id!r} in {kind.cli_name}")
        seen.add(r.record_id)
    return tuple(records)


class EntityStore:
    def __init__(self, collaborator: Collaborator) -> None:
        self.collaborator = collaborator
        self._snapshot = Snapshot()
        self.ready = False
        self.last_error: Optional[BaseException] = None

    @property
    def codec(self) -> LocatorCodec:
        return self.collaborator.codec

    def snapshot(self) -> Snapshot:
        return self._snapshot

    async def _fetch(self, kind: EntityKind) -> tuple[Record, ...]:
        records = await self.collaborator.fetch_records(kind)
        logger.debug("Fetched %d %s", len(records), kind.cli_name)
        return _as_collection(kind, records)

    async def load_all(self) -> bool:
        """
        Load all five collections concurrently.

        Returns False (and keeps the previous snapshot) if any fetch fails.
        """
        try:
            results = await asyncio.gather(*(self._fetch(kind) for kind in ALL_KINDS))
        except LoadFailure as exc:
            self._fail(exc)
            return False
        except RemoteError as exc:
            failure = LoadFailure(f"Error loading data: {exc}")
            failure.__cause__ = exc
            self._fail(failure)
            return False

        self._snapshot = Snapshot(collections=dict(zip(ALL_KINDS, results)))
        self.ready = True
        self.last_error = None
        logger.info(
            "Loaded %s",
            ", ".join(f"{len(recs)} {kind.cli_name}" for kind, recs in self._snapshot.collections.items()),
        )
        return True

    def _fail(self, failure: LoadFailure) -> None:
        self.last_error = failure
        self.ready = False
        logger.error("%s", failure)

    async def reload(self, kind: EntityKind) -> tuple[Record, ...]:
        """
        Refetch one collection and replace its snapshot.

        Raises LoadFailure; the previous snapshot stays in place in that case.
        """
        try:
            records = await self._fetch(kind)
        except LoadFailure:
            raise
        except RemoteError as exc:
            raise LoadFailure(f"Error reloading {kind.cli_name}: {exc}") from exc

        collections = dict(self._snapshot.collections)
        collections[kind] = records
        self._snapshot = Snapshot(collections=collections)
        return records
