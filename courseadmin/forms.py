"""
Form and dialog state.

One form dataclass per entity kind. Form values are kept as strings (what a
user types); foreign keys are plain record ids (what a selection widget holds).

- blank_form(kind) / form_from_record(kind, record, codec): record -> form
- form.to_payload(codec): form -> write payload for the remote store
  (record id -> locator, numeric string -> number, empty optional -> omitted)

The only rules here are type coercions. Anything else is the store's business.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, ClassVar, Literal, Mapping, Optional, Union, assert_never

from courseadmin.errors import FormError, InvalidOperation
from courseadmin.model import EntityKind, Record
from courseadmin.references import LocatorCodec

_TRUE = {"1", "true", "yes", "y", "ja", "j", "x"}
_FALSE = {"0", "false", "no", "n", "nein", ""}


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _number(name: str, raw: str) -> Union[int, float]:
    s = raw.strip().replace(",", ".")
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        raise FormError(f"{name}: not a number: {raw!r}") from None


def _flag(name: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise FormError(f"{name}: expected yes/no, got {raw!r}")


def _optional(payload: dict[str, Any], name: str, value: str) -> None:
    if value.strip():
        payload[name] = value


def _optional_number(payload: dict[str, Any], name: str, value: str) -> None:
    if value.strip():
        payload[name] = _number(name, value)


def _optional_ref(payload: dict[str, Any], codec: LocatorCodec, name: str, kind: EntityKind, record_id: str) -> None:
    # empty selection omits the field instead of encoding an empty reference
    if record_id.strip():
        payload[name] = codec.encode(kind, record_id.strip())


class _FormBase:
    kind: ClassVar[EntityKind]
    labels: ClassVar[dict[str, str]]

    def field_names(self) -> list[str]:
        return [f.name for f in fields(self)]  # type: ignore[arg-type]

    def apply(self, values: Mapping[str, Any]) -> None:
        """
        Set form fields from user input (e.g. CLI 'name=value' pairs).
        """
        names = self.field_names()
        for name, raw in values.items():
            if name not in names:
                raise FormError(f"Unknown field for {self.kind.cli_name}: {name!r} (expected one of {', '.join(names)})")
            current = getattr(self, name)
            if isinstance(current, bool):
                setattr(self, name, _flag(name, raw))
            else:
                setattr(self, name, "" if raw is None else str(raw))


@dataclass
class CourseForm(_FormBase):
    kind: ClassVar[EntityKind] = EntityKind.COURSE
    labels: ClassVar[dict[str, str]] = {
        "titel": "Titel",
        "beschreibung": "Beschreibung",
        "startdatum": "Startdatum",
        "enddatum": "Enddatum",
        "max_teilnehmer": "Max. Teilnehmer",
        "preis": "Preis (€)",
        "dozent": "Dozent",
        "raum": "Raum",
    }

    titel: str = ""
    beschreibung: str = ""
    startdatum: str = ""
    enddatum: str = ""
    max_teilnehmer: str = ""
    preis: str = ""
    dozent: str = ""
    raum: str = ""

    @classmethod
    def from_record(cls, record: Record, codec: LocatorCodec) -> "CourseForm":
        f = record.fields
        return cls(
            titel=_text(f.get("titel")),
            beschreibung=_text(f.get("beschreibung")),
            startdatum=_text(f.get("startdatum")),
            enddatum=_text(f.get("enddatum")),
            max_teilnehmer=_text(f.get("max_teilnehmer")),
            preis=_text(f.get("preis")),
            dozent=codec.decode(f.get("dozent")) or "",
            raum=codec.decode(f.get("raum")) or "",
        )

    def to_payload(self, codec: LocatorCodec) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "titel": self.titel,
            "startdatum": self.startdatum,
            "enddatum": self.enddatum,
        }
        _optional(payload, "beschreibung", self.beschreibung)
        _optional_number(payload, "max_teilnehmer", self.max_teilnehmer)
        if self.preis.strip():
            payload["preis"] = float(_number("preis", self.preis))
        _optional_ref(payload, codec, "dozent", EntityKind.INSTRUCTOR, self.dozent)
        _optional_ref(payload, codec, "raum", EntityKind.ROOM, self.raum)
        return payload


@dataclass
class InstructorForm(_FormBase):
    kind: ClassVar[EntityKind] = EntityKind.INSTRUCTOR
    labels: ClassVar[dict[str, str]] = {
        "name": "Name",
        "email": "E-Mail",
        "telefon": "Telefon",
        "fachgebiet": "Fachgebiet",
    }

    name: str = ""
    email: str = ""
    telefon: str = ""
    fachgebiet: str = ""

    @classmethod
    def from_record(cls, record: Record, codec: LocatorCodec) -> "InstructorForm":
        f = record.fields
        return cls(
            name=_text(f.get("name")),
            email=_text(f.get("email")),
            telefon=_text(f.get("telefon")),
            fachgebiet=_text(f.get("fachgebiet")),
        )

    def to_payload(self, codec: LocatorCodec) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "email": self.email}
        _optional(payload, "telefon", self.telefon)
        _optional(payload, "fachgebiet", self.fachgebiet)
        return payload


@dataclass
class ParticipantForm(_FormBase):
    kind: ClassVar[EntityKind] = EntityKind.PARTICIPANT
    labels: ClassVar[dict[str, str]] = {
        "name": "Name",
        "email": "E-Mail",
        "telefon": "Telefon",
        "geburtsdatum": "Geburtsdatum",
    }

    name: str = ""
    email: str = ""
    telefon: str = ""
    geburtsdatum: str = ""

    @classmethod
    def from_record(cls, record: Record, codec: LocatorCodec) -> "ParticipantForm":
        f = record.fields
        return cls(
            name=_text(f.get("name")),
            email=_text(f.get("email")),
            telefon=_text(f.get("telefon")),
            geburtsdatum=_text(f.get("geburtsdatum")),
        )

    def to_payload(self, codec: LocatorCodec) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "email": self.email}
        _optional(payload, "telefon", self.telefon)
        _optional(payload, "geburtsdatum", self.geburtsdatum)
        return payload


@dataclass
class RoomForm(_FormBase):
    kind: ClassVar[EntityKind] = EntityKind.ROOM
    labels: ClassVar[dict[str, str]] = {
        "raumname": "Raumname",
        "gebaeude": "Gebäude",
        "kapazitaet": "Kapazität",
    }

    raumname: str = ""
    gebaeude: str = ""
    kapazitaet: str = ""

    @classmethod
    def from_record(cls, record: Record, codec: LocatorCodec) -> "RoomForm":
        f = record.fields
        return cls(
            raumname=_text(f.get("raumname")),
            gebaeude=_text(f.get("gebaeude")),
            kapazitaet=_text(f.get("kapazitaet")),
        )

    def to_payload(self, codec: LocatorCodec) -> dict[str, Any]:
        payload: dict[str, Any] = {"raumname": self.raumname}
        _optional(payload, "gebaeude", self.gebaeude)
        _optional_number(payload, "kapazitaet", self.kapazitaet)
        return payload


@dataclass
class EnrollmentForm(_FormBase):
    kind: ClassVar[EntityKind] = EntityKind.ENROLLMENT
    labels: ClassVar[dict[str, str]] = {
        "teilnehmer": "Teilnehmer",
        "kurs": "Kurs",
        "anmeldedatum": "Anmeldedatum",
        "bezahlt": "Bezahlt",
    }

    teilnehmer: str = ""
    kurs: str = ""
    anmeldedatum: str = ""
    bezahlt: bool = False

    @classmethod
    def from_record(cls, record: Record, codec: LocatorCodec) -> "EnrollmentForm":
        f = record.fields
        return cls(
            teilnehmer=codec.decode(f.get("teilnehmer")) or "",
            kurs=codec.decode(f.get("kurs")) or "",
            anmeldedatum=_text(f.get("anmeldedatum")),
            bezahlt=bool(f.get("bezahlt") or False),
        )

    def to_payload(self, codec: LocatorCodec) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        _optional_ref(payload, codec, "teilnehmer", EntityKind.PARTICIPANT, self.teilnehmer)
        _optional_ref(payload, codec, "kurs", EntityKind.COURSE, self.kurs)
        payload["anmeldedatum"] = self.anmeldedatum
        payload["bezahlt"] = self.bezahlt
        return payload


ActiveForm = Union[CourseForm, InstructorForm, ParticipantForm, RoomForm, EnrollmentForm]


def blank_form(kind: EntityKind, today: Optional[date] = None) -> ActiveForm:
    match kind:
        case EntityKind.COURSE:
            return CourseForm()
        case EntityKind.INSTRUCTOR:
            return InstructorForm()
        case EntityKind.PARTICIPANT:
            return ParticipantForm()
        case EntityKind.ROOM:
            return RoomForm()
        case EntityKind.ENROLLMENT:
            return EnrollmentForm(anmeldedatum=(today or date.today()).isoformat())
        case _:
            assert_never(kind)


def form_from_record(kind: EntityKind, record: Record, codec: LocatorCodec) -> ActiveForm:
    match kind:
        case EntityKind.COURSE:
            return CourseForm.from_record(record, codec)
        case EntityKind.INSTRUCTOR:
            return InstructorForm.from_record(record, codec)
        case EntityKind.PARTICIPANT:
            return ParticipantForm.from_record(record, codec)
        case EntityKind.ROOM:
            return RoomForm.from_record(record, codec)
        case EntityKind.ENROLLMENT:
            return EnrollmentForm.from_record(record, codec)
        case _:
            assert_never(kind)


DialogMode = Literal["create", "edit"]


@dataclass
class DialogState:
    """
    The create/edit dialog: which kind, which record (when editing), which form.
    """

    kind: EntityKind = EntityKind.COURSE
    is_open: bool = False
    mode: DialogMode = "create"
    editing_id: Optional[str] = None
    form: Optional[ActiveForm] = None

    @classmethod
    def open_create(cls, kind: EntityKind, today: Optional[date] = None) -> "DialogState":
        return cls(kind=kind, is_open=True, mode="create", editing_id=None, form=blank_form(kind, today))

    @classmethod
    def open_edit(cls, kind: EntityKind, record: Record, codec: LocatorCodec) -> "DialogState":
        return cls(
            kind=kind,
            is_open=True,
            mode="edit",
            editing_id=record.record_id,
            form=form_from_record(kind, record, codec),
        )

    @property
    def active_form(self) -> ActiveForm:
        if self.form is None:
            raise InvalidOperation("Dialog has no form")
        return self.form

    def close(self) -> None:
        self.is_open = False

    @property
    def title(self) -> str:
        prefix = "Neu: " if self.mode == "create" else "Bearbeiten: "
        return prefix + self.kind.singular


@dataclass(frozen=True)
class DeleteTarget:
    kind: EntityKind
    record_id: str
