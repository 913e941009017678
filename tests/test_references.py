"""
Unit tests for locator decoding and reference resolution.

Resolution contract:
- empty / undecodable / dangling locator -> "-"
- otherwise the kind-specific label
- never raises
"""

import unittest

from courseadmin.errors import ConfigError
from courseadmin.model import EntityKind, Record
from courseadmin.references import PLACEHOLDER, LocatorCodec, Reference, ReferenceResolver, extract_record_id
from courseadmin.store import Snapshot

from fakes import BASE_URL, make_codec, rid


class TestExtractRecordId(unittest.TestCase):
    def test_trailing_hex_id(self) -> None:
        url = f"{BASE_URL}/apps/abc/records/{rid(7)}"
        self.assertEqual(extract_record_id(url), rid(7))

    def test_uppercase_hex_is_accepted(self) -> None:
        self.assertEqual(extract_record_id("x/records/ABCDEF0123456789ABCDEF01"), "ABCDEF0123456789ABCDEF01")

    def test_invalid_locators(self) -> None:
        self.assertIsNone(extract_record_id(None))
        self.assertIsNone(extract_record_id(""))
        self.assertIsNone(extract_record_id("https://example.test/records/not-an-id"))
        self.assertIsNone(extract_record_id(f"{BASE_URL}/apps/abc/records/{rid(7)}/extra"))


class TestCodec(unittest.TestCase):
    def test_encode_then_decode_gives_reference(self) -> None:
        codec = make_codec()
        locator = codec.encode(EntityKind.ROOM, rid(3))
        self.assertEqual(locator, f"{BASE_URL}/apps/app-raeume/records/{rid(3)}")
        self.assertEqual(codec.to_reference(locator, EntityKind.ROOM), Reference(EntityKind.ROOM, rid(3)))
        self.assertIsNone(codec.to_reference("garbage", EntityKind.ROOM))

    def test_encode_without_app_id_is_a_config_error(self) -> None:
        codec = LocatorCodec(BASE_URL, {EntityKind.COURSE: "app-kurse"})
        with self.assertRaises(ConfigError):
            codec.encode(EntityKind.ROOM, rid(3))


class TestResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.codec = make_codec()
        snapshot = Snapshot(
            collections={
                EntityKind.INSTRUCTOR: (Record(rid(1), {"name": "Dr. Weber"}),),
                EntityKind.ROOM: (
                    Record(rid(2), {"raumname": "A 101", "gebaeude": "Hauptgebäude"}),
                    Record(rid(3), {"raumname": "Labor"}),
                ),
                EntityKind.PARTICIPANT: (Record(rid(4), {"name": "Anna Schmidt"}),),
                EntityKind.COURSE: (Record(rid(5), {"titel": "Python Grundlagen"}), Record(rid(6), {})),
            }
        )
        self.resolver = ReferenceResolver(snapshot, self.codec)

    def loc(self, kind: EntityKind, n: int) -> str:
        return self.codec.encode(kind, rid(n))

    def test_labels_per_kind(self) -> None:
        self.assertEqual(self.resolver.instructor_name(self.loc(EntityKind.INSTRUCTOR, 1)), "Dr. Weber")
        self.assertEqual(self.resolver.room_name(self.loc(EntityKind.ROOM, 2)), "A 101 (Hauptgebäude)")
        self.assertEqual(self.resolver.participant_name(self.loc(EntityKind.PARTICIPANT, 4)), "Anna Schmidt")
        self.assertEqual(self.resolver.course_title(self.loc(EntityKind.COURSE, 5)), "Python Grundlagen")

    def test_room_without_building(self) -> None:
        self.assertEqual(self.resolver.room_name(self.loc(EntityKind.ROOM, 3)), "Labor (-)")

    def test_empty_and_undecodable(self) -> None:
        self.assertEqual(self.resolver.instructor_name(None), PLACEHOLDER)
        self.assertEqual(self.resolver.instructor_name(""), PLACEHOLDER)
        self.assertEqual(self.resolver.instructor_name("not a locator"), PLACEHOLDER)

    def test_deleted_participant_gives_placeholder(self) -> None:
        self.assertEqual(self.resolver.participant_name(self.loc(EntityKind.PARTICIPANT, 99)), PLACEHOLDER)

    def test_id_of_other_kind_does_not_match(self) -> None:
        # rid(1) is an instructor, not a course
        self.assertEqual(self.resolver.course_title(self.loc(EntityKind.COURSE, 1)), PLACEHOLDER)

    def test_record_without_label_field(self) -> None:
        self.assertEqual(self.resolver.course_title(self.loc(EntityKind.COURSE, 6)), PLACEHOLDER)

    def test_non_string_locator_does_not_raise(self) -> None:
        self.assertEqual(self.resolver.course_title(12345), PLACEHOLDER)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
