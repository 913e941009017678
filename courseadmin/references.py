"""
Foreign-key references between records.

The remote store keeps a reference as a locator URL, e.g.

    https://my.living-apps.de/rest/apps/<app_id>/records/<record_id>

The core never matches raw locator strings. LocatorCodec turns them into
Reference values (and back), and ReferenceResolver turns a locator into a
human-readable label using the currently loaded snapshot.

Resolution contract: a missing, undecodable or dangling reference yields "-",
never an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Mapping, Optional

from courseadmin.errors import ConfigError
from courseadmin.model import EntityKind, Record

if TYPE_CHECKING:
    from courseadmin.store import Snapshot

PLACEHOLDER = "-"

# Record ids are 24 hex chars at the very end of the locator
_RECORD_ID_RE = re.compile(r"([a-f0-9]{24})$", re.IGNORECASE)


def extract_record_id(locator: Optional[str]) -> Optional[str]:
    """
    Return the record id at the end of a locator, or None if there is none.
    """
    if not locator or not isinstance(locator, str):
        return None
    match = _RECORD_ID_RE.search(locator.strip())
    return match.group(1) if match else None


@dataclass(frozen=True)
class Reference:
    kind: EntityKind
    record_id: str


class LocatorCodec:
    """
    Encode/decode pair for locator strings.

    Needs the app id of every kind that can be the target of a reference.
    """

    def __init__(self, record_base_url: str, app_ids: Mapping[EntityKind, str]) -> None:
        self.record_base_url = record_base_url.rstrip("/")
        self.app_ids = dict(app_ids)

    def encode(self, kind: EntityKind, record_id: str) -> str:
        app_id = self.app_ids.get(kind)
        if not app_id:
            raise ConfigError(f"No app id known for {kind.cli_name}")
        return f"{self.record_base_url}/apps/{app_id}/records/{record_id}"

    def decode(self, locator: Optional[str]) -> Optional[str]:
        return extract_record_id(locator)

    def to_reference(self, locator: Optional[str], kind: EntityKind) -> Optional[Reference]:
        record_id = self.decode(locator)
        if record_id is None:
            return None
        return Reference(kind=kind, record_id=record_id)

    def to_locator(self, ref: Reference) -> str:
        return self.encode(ref.kind, ref.record_id)


def _text(value: object) -> str:
    return "" if value is None else str(value).strip()


def _room_label(room: Record) -> str:
    name = _text(room.get("raumname"))
    building = _text(room.get("gebaeude")) or PLACEHOLDER
    return f"{name} ({building})"


_LABELS: dict[EntityKind, Callable[[Record], str]] = {
    EntityKind.INSTRUCTOR: lambda r: _text(r.get("name")),
    EntityKind.PARTICIPANT: lambda r: _text(r.get("name")),
    EntityKind.COURSE: lambda r: _text(r.get("titel")),
    EntityKind.ROOM: _room_label,
    EntityKind.ENROLLMENT: lambda r: r.record_id,
}


def record_label(record: Record, kind: EntityKind) -> str:
    return _LABELS[kind](record) or PLACEHOLDER


class ReferenceResolver:
    """
    Resolve locators against one snapshot.

    The snapshot is immutable, so the id indexes are built once here.
    """

    def __init__(self, snapshot: "Snapshot", codec: LocatorCodec) -> None:
        self.snapshot = snapshot
        self.codec = codec
        self._index: dict[EntityKind, dict[str, Record]] = {}

    def _by_id(self, kind: EntityKind) -> dict[str, Record]:
        idx = self._index.get(kind)
        if idx is None:
            idx = {r.record_id: r for r in self.snapshot.records(kind)}
            self._index[kind] = idx
        return idx

    def lookup(self, locator: Optional[str], kind: EntityKind) -> Optional[Record]:
        ref = self.codec.to_reference(locator, kind)
        if ref is None:
            return None
        return self._by_id(ref.kind).get(ref.record_id)

    def label(self, locator: Optional[str], kind: EntityKind) -> str:
        record = self.lookup(locator, kind)
        if record is None:
            return PLACEHOLDER
        return record_label(record, kind)

    def instructor_name(self, locator: Optional[str]) -> str:
        return self.label(locator, EntityKind.INSTRUCTOR)

    def room_name(self, locator: Optional[str]) -> str:
        return self.label(locator, EntityKind.ROOM)

    def participant_name(self, locator: Optional[str]) -> str:
        return self.label(locator, EntityKind.PARTICIPANT)

    def course_title(self, locator: Optional[str]) -> str:
        return self.label(locator, EntityKind.COURSE)
