"""
Unit tests for form state <-> record/payload mapping.
"""

import unittest
from datetime import date

from courseadmin.errors import FormError, InvalidOperation
from courseadmin.forms import (
    CourseForm,
    DialogState,
    EnrollmentForm,
    RoomForm,
    blank_form,
    form_from_record,
)
from courseadmin.model import ALL_KINDS, EntityKind, Record

from fakes import make_codec, rid


class TestForms(unittest.TestCase):
    def setUp(self) -> None:
        self.codec = make_codec()

    def test_blank_forms(self) -> None:
        for kind in ALL_KINDS:
            self.assertIs(blank_form(kind).kind, kind)
        enrollment = blank_form(EntityKind.ENROLLMENT, date(2026, 3, 18))
        self.assertEqual(enrollment.anmeldedatum, "2026-03-18")
        self.assertFalse(enrollment.bezahlt)

    def test_course_from_record_decodes_references(self) -> None:
        record = Record(
            rid(1),
            {
                "titel": "Python",
                "startdatum": "2026-04-01",
                "max_teilnehmer": 12,
                "preis": 250.0,
                "dozent": self.codec.encode(EntityKind.INSTRUCTOR, rid(7)),
                "raum": "broken",
            },
        )
        form = form_from_record(EntityKind.COURSE, record, self.codec)
        self.assertIsInstance(form, CourseForm)
        self.assertEqual(form.dozent, rid(7))
        self.assertEqual(form.raum, "")
        self.assertEqual(form.max_teilnehmer, "12")
        self.assertEqual(form.preis, "250")
        self.assertEqual(form.beschreibung, "")

    def test_course_payload(self) -> None:
        form = CourseForm(titel="Python", startdatum="2026-04-01", enddatum="2026-06-30", max_teilnehmer="12", preis="99.5", dozent=rid(7))
        payload = form.to_payload(self.codec)
        self.assertEqual(
            payload,
            {
                "titel": "Python",
                "startdatum": "2026-04-01",
                "enddatum": "2026-06-30",
                "max_teilnehmer": 12,
                "preis": 99.5,
                "dozent": self.codec.encode(EntityKind.INSTRUCTOR, rid(7)),
            },
        )
        # empty selection / empty optional fields are omitted, not sent as ""
        self.assertNotIn("raum", payload)
        self.assertNotIn("beschreibung", payload)

    def test_non_numeric_capacity_is_rejected(self) -> None:
        with self.assertRaises(FormError):
            RoomForm(raumname="A", kapazitaet="viele").to_payload(self.codec)

    def test_enrollment_roundtrip_through_payload(self) -> None:
        form = EnrollmentForm(teilnehmer=rid(1), kurs=rid(2), anmeldedatum="2026-03-01", bezahlt=True)
        payload = form.to_payload(self.codec)
        self.assertEqual(payload["teilnehmer"], self.codec.encode(EntityKind.PARTICIPANT, rid(1)))
        self.assertEqual(payload["kurs"], self.codec.encode(EntityKind.COURSE, rid(2)))
        self.assertIs(payload["bezahlt"], True)

        again = form_from_record(EntityKind.ENROLLMENT, Record(rid(3), payload), self.codec)
        self.assertEqual(again, form)

    def test_enrollment_without_selection_omits_references(self) -> None:
        payload = EnrollmentForm(anmeldedatum="2026-03-01").to_payload(self.codec)
        self.assertEqual(payload, {"anmeldedatum": "2026-03-01", "bezahlt": False})

    def test_apply(self) -> None:
        form = EnrollmentForm()
        form.apply({"bezahlt": "ja", "kurs": rid(2)})
        self.assertTrue(form.bezahlt)
        self.assertEqual(form.kurs, rid(2))
        with self.assertRaises(FormError):
            form.apply({"preis": "10"})
        with self.assertRaises(FormError):
            form.apply({"bezahlt": "vielleicht"})


class TestDialogState(unittest.TestCase):
    def test_titles_and_modes(self) -> None:
        create = DialogState.open_create(EntityKind.COURSE)
        self.assertEqual(create.title, "Neu: Kurs")
        self.assertTrue(create.is_open)
        self.assertIsNone(create.editing_id)

        edit = DialogState.open_edit(EntityKind.INSTRUCTOR, Record(rid(4), {"name": "Eva"}), make_codec())
        self.assertEqual(edit.title, "Bearbeiten: Dozent")
        self.assertEqual(edit.editing_id, rid(4))
        self.assertEqual(edit.form.name, "Eva")

        edit.close()
        self.assertFalse(edit.is_open)

    def test_active_form_requires_a_form(self) -> None:
        dialog = DialogState.open_create(EntityKind.ROOM)
        self.assertIs(dialog.active_form, dialog.form)
        with self.assertRaises(InvalidOperation):
            DialogState().active_form


if __name__ == "__main__":
    unittest.main()
