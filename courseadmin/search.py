"""
Text search over entity collections.

Matching rule: case-insensitive substring match on any of the configured fields.
Missing or empty field values never match. Result order follows the input.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence, assert_never

from courseadmin.model import EntityKind, Record
from courseadmin.references import ReferenceResolver
from courseadmin.store import Snapshot

SEARCH_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.COURSE: ("titel", "beschreibung"),
    EntityKind.INSTRUCTOR: ("name", "email", "fachgebiet"),
    EntityKind.PARTICIPANT: ("name", "email"),
    EntityKind.ROOM: ("raumname", "gebaeude"),
}


def _contains(value: Any, query: str) -> bool:
    # falsy values (None, "", 0, False) never match
    if not value:
        return False
    return query in str(value).lower()


def filter_records(query: str, records: Sequence[Record], fields: Iterable[str]) -> list[Record]:
    """
    Return the records whose value at any of `fields` contains `query`.
    An empty query returns all records.
    """
    if not query:
        return list(records)
    q = query.lower()
    names = tuple(fields)
    return [r for r in records if any(_contains(r.get(name), q) for name in names)]


def filter_enrollments(query: str, enrollments: Sequence[Record], resolver: ReferenceResolver) -> list[Record]:
    """
    Enrollments are searched by the participant name and the course title they point to.
    """
    if not query:
        return list(enrollments)
    q = query.lower()
    out: list[Record] = []
    for e in enrollments:
        participant = resolver.participant_name(e.get("teilnehmer")).lower()
        course = resolver.course_title(e.get("kurs")).lower()
        if q in participant or q in course:
            out.append(e)
    return out


def filter_snapshot(query: str, kind: EntityKind, snapshot: Snapshot, resolver: ReferenceResolver) -> list[Record]:
    records = snapshot.records(kind)
    match kind:
        case EntityKind.ENROLLMENT:
            return filter_enrollments(query, records, resolver)
        case EntityKind.COURSE | EntityKind.INSTRUCTOR | EntityKind.PARTICIPANT | EntityKind.ROOM:
            return filter_records(query, records, SEARCH_FIELDS[kind])
        case _:
            assert_never(kind)
