"""
Central data model definitions used across the project.

This module defines the five entity kinds of the course administration and the
record shape the remote store hands us, so that:
- all modules share the same wire field names
- foreign-key fields are declared in one place (field -> target kind)
- dispatch over kinds happens on an Enum, never on loose strings
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class EntityKind(Enum):
    """
    One member per collection in the remote store.

    The value is the collection key used by the store (and by the original tab names).
    """

    COURSE = "kurse"
    INSTRUCTOR = "dozenten"
    PARTICIPANT = "teilnehmer"
    ROOM = "raeume"
    ENROLLMENT = "anmeldungen"

    @property
    def cli_name(self) -> str:
        return _CLI_NAMES[self]

    @property
    def singular(self) -> str:
        """German singular label, used for dialog titles."""
        return _SINGULAR[self]

    @property
    def plural(self) -> str:
        return _PLURAL[self]

    @classmethod
    def from_cli(cls, name: str) -> "EntityKind":
        key = name.strip().lower()
        for kind, cli_name in _CLI_NAMES.items():
            if key in (cli_name, kind.value):
                return kind
        raise ValueError(f"Unknown entity kind: {name!r}")


_CLI_NAMES = {
    EntityKind.COURSE: "courses",
    EntityKind.INSTRUCTOR: "instructors",
    EntityKind.PARTICIPANT: "participants",
    EntityKind.ROOM: "rooms",
    EntityKind.ENROLLMENT: "enrollments",
}

_SINGULAR = {
    EntityKind.COURSE: "Kurs",
    EntityKind.INSTRUCTOR: "Dozent",
    EntityKind.PARTICIPANT: "Teilnehmer",
    EntityKind.ROOM: "Raum",
    EntityKind.ENROLLMENT: "Anmeldung",
}

_PLURAL = {
    EntityKind.COURSE: "Kurse",
    EntityKind.INSTRUCTOR: "Dozenten",
    EntityKind.PARTICIPANT: "Teilnehmer",
    EntityKind.ROOM: "Räume",
    EntityKind.ENROLLMENT: "Anmeldungen",
}

# Display order of the tabs
ALL_KINDS: tuple[EntityKind, ...] = (
    EntityKind.COURSE,
    EntityKind.INSTRUCTOR,
    EntityKind.PARTICIPANT,
    EntityKind.ROOM,
    EntityKind.ENROLLMENT,
)

# Foreign-key fields per kind: field name -> referenced kind
REFERENCE_FIELDS: dict[EntityKind, dict[str, EntityKind]] = {
    EntityKind.COURSE: {"dozent": EntityKind.INSTRUCTOR, "raum": EntityKind.ROOM},
    EntityKind.INSTRUCTOR: {},
    EntityKind.PARTICIPANT: {},
    EntityKind.ROOM: {},
    EntityKind.ENROLLMENT: {"teilnehmer": EntityKind.PARTICIPANT, "kurs": EntityKind.COURSE},
}


@dataclass(frozen=True)
class Record:
    """
    Represents one record of any kind as returned by the remote store.

    record_id is assigned by the store on create and never changes afterwards.
    fields holds the store's attribute bag under its wire names
    (e.g. "titel", "startdatum", "dozent").
    """

    record_id: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)
