import unittest

from courseadmin.display import empty_message, format_currency, format_date, table_columns, table_row
from courseadmin.model import EntityKind, Record
from courseadmin.references import ReferenceResolver
from courseadmin.store import Snapshot

from fakes import make_codec, rid


class TestFormatting(unittest.TestCase):
    def test_format_date(self) -> None:
        self.assertEqual(format_date("2026-03-08"), "08.03.2026")
        self.assertEqual(format_date(None), "-")
        self.assertEqual(format_date("kaputt"), "-")

    def test_format_currency(self) -> None:
        self.assertEqual(format_currency(1234.5), "1.234,50 €")
        self.assertEqual(format_currency(0), "0,00 €")
        self.assertEqual(format_currency(None), "-")


class TestRows(unittest.TestCase):
    def test_course_row_resolves_references(self) -> None:
        codec = make_codec()
        snapshot = Snapshot(collections={EntityKind.INSTRUCTOR: (Record(rid(1), {"name": "Eva"}),)})
        resolver = ReferenceResolver(snapshot, codec)
        course = Record(
            rid(2),
            {
                "titel": "Python",
                "startdatum": "2026-04-01",
                "enddatum": "2026-06-30",
                "dozent": codec.encode(EntityKind.INSTRUCTOR, rid(1)),
                "raum": codec.encode(EntityKind.ROOM, rid(9)),
                "preis": 99,
            },
        )
        row = table_row(EntityKind.COURSE, course, resolver)
        self.assertEqual(row, [rid(2), "Python", "01.04.2026 - 30.06.2026", "Eva", "-", "-", "99,00 €"])
        self.assertEqual(len(row), len(table_columns(EntityKind.COURSE)))

    def test_enrollment_paid_label(self) -> None:
        resolver = ReferenceResolver(Snapshot(), make_codec())
        row = table_row(EntityKind.ENROLLMENT, Record(rid(3), {"bezahlt": True}), resolver)
        self.assertEqual(row[1:], ["-", "-", "-", "Bezahlt"])

    def test_empty_message(self) -> None:
        self.assertEqual(empty_message(EntityKind.ROOM), "Keine Räume gefunden")


if __name__ == "__main__":
    unittest.main()
