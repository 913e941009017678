"""
Formatting helpers for the terminal front ends.

Turns records into table rows (one layout per tab), with German date and
currency formats. Missing values are shown as "-".
"""

from __future__ import annotations

from typing import Any, Sequence, assert_never

from courseadmin.model import EntityKind, Record
from courseadmin.references import PLACEHOLDER, ReferenceResolver, record_label
from courseadmin.stats import parse_day

_COLUMNS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.COURSE: ("Titel", "Zeitraum", "Dozent", "Raum", "Max. TN", "Preis"),
    EntityKind.INSTRUCTOR: ("Name", "E-Mail", "Telefon", "Fachgebiet"),
    EntityKind.PARTICIPANT: ("Name", "E-Mail", "Telefon", "Geburtsdatum"),
    EntityKind.ROOM: ("Raumname", "Gebäude", "Kapazität"),
    EntityKind.ENROLLMENT: ("Teilnehmer", "Kurs", "Anmeldedatum", "Bezahlt"),
}

_EMPTY: dict[EntityKind, str] = {
    EntityKind.COURSE: "Keine Kurse gefunden",
    EntityKind.INSTRUCTOR: "Keine Dozenten gefunden",
    EntityKind.PARTICIPANT: "Keine Teilnehmer gefunden",
    EntityKind.ROOM: "Keine Räume gefunden",
    EntityKind.ENROLLMENT: "Keine Anmeldungen gefunden",
}


def format_date(value: Any) -> str:
    d = parse_day(value)
    return d.strftime("%d.%m.%Y") if d else PLACEHOLDER


def format_currency(amount: Any) -> str:
    """
    German EUR format: 1234.5 -> '1.234,50 €'
    """
    if amount is None or isinstance(amount, bool):
        return PLACEHOLDER
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return PLACEHOLDER
    us = f"{value:,.2f}"
    return us.replace(",", "_").replace(".", ",").replace("_", ".") + " €"


def _cell(value: Any) -> str:
    if value is None or value == "":
        return PLACEHOLDER
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def paid_label(enrollment: Record) -> str:
    return "Bezahlt" if enrollment.get("bezahlt") else "Offen"


def table_columns(kind: EntityKind) -> tuple[str, ...]:
    return ("ID",) + _COLUMNS[kind]


def empty_message(kind: EntityKind) -> str:
    return _EMPTY[kind]


def table_row(kind: EntityKind, r: Record, resolver: ReferenceResolver) -> list[str]:
    match kind:
        case EntityKind.COURSE:
            cells = [
                _cell(r.get("titel")),
                f"{format_date(r.get('startdatum'))} - {format_date(r.get('enddatum'))}",
                resolver.instructor_name(r.get("dozent")),
                resolver.room_name(r.get("raum")),
                _cell(r.get("max_teilnehmer")),
                format_currency(r.get("preis")),
            ]
        case EntityKind.INSTRUCTOR:
            cells = [_cell(r.get("name")), _cell(r.get("email")), _cell(r.get("telefon")), _cell(r.get("fachgebiet"))]
        case EntityKind.PARTICIPANT:
            cells = [
                _cell(r.get("name")),
                _cell(r.get("email")),
                _cell(r.get("telefon")),
                format_date(r.get("geburtsdatum")),
            ]
        case EntityKind.ROOM:
            cells = [_cell(r.get("raumname")), _cell(r.get("gebaeude")), _cell(r.get("kapazitaet"))]
        case EntityKind.ENROLLMENT:
            cells = [
                resolver.participant_name(r.get("teilnehmer")),
                resolver.course_title(r.get("kurs")),
                format_date(r.get("anmeldedatum")),
                paid_label(r),
            ]
        case _:
            assert_never(kind)
    return [r.record_id] + cells


def table_rows(kind: EntityKind, records: Sequence[Record], resolver: ReferenceResolver) -> list[list[str]]:
    return [table_row(kind, r, resolver) for r in records]


def record_choices(kind: EntityKind, records: Sequence[Record]) -> list[tuple[str, str]]:
    """
    (record_id, label) pairs for selection prompts, e.g. picking the instructor of a course.
    """
    return [(r.record_id, record_label(r, kind)) for r in records]
