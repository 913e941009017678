"""
Tests for loading and reloading the entity store.

Load contract:
- all five kinds are fetched; snapshots are installed only if all succeed
- a failed load leaves the previous snapshot in place and marks the store not ready
"""

import unittest

from courseadmin.errors import LoadFailure
from courseadmin.model import ALL_KINDS, EntityKind, Record
from courseadmin.store import EntityStore

from fakes import FakeCollaborator, rid


class DuplicateIdsCollaborator(FakeCollaborator):
    async def fetch_records(self, kind: EntityKind) -> list[Record]:
        records = await super().fetch_records(kind)
        if kind is EntityKind.ROOM:
            return records + records
        return records


class BrokenCollaborator(FakeCollaborator):
    async def fetch_records(self, kind: EntityKind) -> list[Record]:
        raise TypeError("unexpected field layout")


class TestEntityStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = FakeCollaborator()
        self.client.add(EntityKind.COURSE, titel="Python Grundlagen")
        self.client.add(EntityKind.ROOM, raumname="A 101")
        self.store = EntityStore(self.client)

    async def test_load_all_fetches_every_kind(self) -> None:
        ok = await self.store.load_all()
        self.assertTrue(ok)
        self.assertTrue(self.store.ready)
        fetched = {c[1] for c in self.client.calls if c[0] == "fetch"}
        self.assertEqual(fetched, set(ALL_KINDS))
        self.assertEqual([r.get("titel") for r in self.store.snapshot().courses], ["Python Grundlagen"])
        self.assertEqual(self.store.snapshot().enrollments, ())

    async def test_one_failed_fetch_fails_the_whole_load(self) -> None:
        self.client.fail_fetch = {EntityKind.ENROLLMENT}
        ok = await self.store.load_all()
        self.assertFalse(ok)
        self.assertFalse(self.store.ready)
        self.assertIsInstance(self.store.last_error, LoadFailure)
        # nothing was installed, not even the kinds that loaded fine
        self.assertEqual(self.store.snapshot().courses, ())

    async def test_failed_reload_keeps_previous_snapshot(self) -> None:
        await self.store.load_all()
        before = self.store.snapshot()
        self.client.fail_fetch = {EntityKind.COURSE}
        with self.assertRaises(LoadFailure):
            await self.store.reload(EntityKind.COURSE)
        self.assertIs(self.store.snapshot(), before)

    async def test_reload_replaces_only_one_kind(self) -> None:
        await self.store.load_all()
        rooms_before = self.store.snapshot().rooms
        self.client.add(EntityKind.COURSE, titel="Excel")
        self.client.add(EntityKind.ROOM, raumname="B 2")

        await self.store.reload(EntityKind.COURSE)

        snapshot = self.store.snapshot()
        self.assertEqual([r.get("titel") for r in snapshot.courses], ["Python Grundlagen", "Excel"])
        self.assertIs(snapshot.rooms, rooms_before)

    async def test_duplicate_ids_are_a_load_failure(self) -> None:
        store = EntityStore(DuplicateIdsCollaborator())
        store.collaborator.add(EntityKind.ROOM, raumname="A 101")
        self.assertFalse(await store.load_all())
        self.assertIn("Duplicate", str(store.last_error))

    async def test_programming_errors_are_not_turned_into_load_failures(self) -> None:
        store = EntityStore(BrokenCollaborator())
        with self.assertRaises(TypeError):
            await store.load_all()
        with self.assertRaises(TypeError):
            await store.reload(EntityKind.ROOM)

    async def test_find(self) -> None:
        await self.store.load_all()
        self.assertEqual(self.store.snapshot().find(EntityKind.ROOM, rid(2)).get("raumname"), "A 101")
        self.assertIsNone(self.store.snapshot().find(EntityKind.ROOM, rid(99)))


if __name__ == "__main__":
    unittest.main()
