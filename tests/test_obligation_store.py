import asyncio
import unittest

from pymongo.errors import PyMongoError

from fiscal_calendar.models.obligation import ObligationFields
from fiscal_calendar.services.obligation_store import ObligationStore
from tests.fakes import FakeCollection


class Recorder:
    def __init__(self):
        self.snapshots = []
        self.errors = []
        self.changed = asyncio.Event()

    def on_change(self, obligations):
        self.snapshots.append(obligations)
        self.changed.set()

    def on_error(self, exc):
        self.errors.append(exc)

    @property
    def latest(self):
        return self.snapshots[-1]


class TestObligationStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.collection = FakeCollection()
        self.store = ObligationStore(self.collection)
        self.rec = Recorder()

    async def asyncTearDown(self):
        self.store.close()

    async def test_subscribe_delivers_first_snapshot_before_returning(self):
        await self.collection.insert_one({"title": "GPS", "date": "2024-03-20", "sphere": "Federal"})
        await self.store.subscribe(self.rec.on_change, self.rec.on_error)
        self.assertEqual(len(self.rec.snapshots), 1)
        self.assertEqual([o.title for o in self.rec.latest], ["GPS"])

    async def test_create_pushes_full_snapshot(self):
        await self.store.subscribe(self.rec.on_change, self.rec.on_error)
        first = await self.store.create(ObligationFields(title="DCTFWeb", date="2024-03-10"))
        second = await self.store.create(ObligationFields(title="ISS", date="2024-03-15", sphere="Municipal"))
        self.assertIsInstance(first, str)
        self.assertEqual([o.id for o in self.rec.latest], [first, second])
        self.assertEqual(self.rec.latest[1].sphere, "Municipal")

    async def test_create_without_title_or_date_is_a_no_op(self):
        await self.store.subscribe(self.rec.on_change, self.rec.on_error)
        self.assertIsNone(await self.store.create(ObligationFields(title="", date="2024-03-10")))
        self.assertIsNone(await self.store.create(ObligationFields(title="GPS", date="")))
        self.assertEqual(self.collection.docs, {})
        self.assertEqual(len(self.rec.snapshots), 1)

    async def test_update_merges_fields_and_keeps_id(self):
        await self.store.subscribe(self.rec.on_change, self.rec.on_error)
        ob_id = await self.store.create(ObligationFields(title="DCTF", date="2024-03-10"))
        ok = await self.store.update(ob_id, ObligationFields(title="DCTFWeb", date="2024-03-11", sphere="Estadual"))
        self.assertTrue(ok)
        [updated] = self.rec.latest
        self.assertEqual(updated.id, ob_id)
        self.assertEqual((updated.title, updated.date, updated.sphere), ("DCTFWeb", "2024-03-11", "Estadual"))

    async def test_update_with_empty_title_writes_nothing(self):
        ob_id = await self.store.create(ObligationFields(title="DCTF", date="2024-03-10"))
        self.assertFalse(await self.store.update(ob_id, ObligationFields(title="", date="2024-03-11")))
        [doc] = self.collection.docs.values()
        self.assertEqual(doc["title"], "DCTF")

    async def test_delete_removes_only_target(self):
        await self.store.subscribe(self.rec.on_change, self.rec.on_error)
        keep = await self.store.create(ObligationFields(title="GPS", date="2024-03-20"))
        drop = await self.store.create(ObligationFields(title="DARF", date="2024-03-25"))
        self.assertTrue(await self.store.delete(drop))
        self.assertEqual([o.id for o in self.rec.latest], [keep])

    async def test_delete_string_keyed_document(self):
        await self.collection.insert_one({"_id": "legacy-1", "title": "GPS", "date": "2024-03-20"})
        self.assertTrue(await self.store.delete("legacy-1"))
        self.assertEqual(self.collection.docs, {})

    async def test_read_failure_is_reported_not_emptied(self):
        self.collection.fail_reads = True
        await self.store.subscribe(self.rec.on_change, self.rec.on_error)
        self.assertEqual(self.rec.snapshots, [])
        self.assertEqual(len(self.rec.errors), 1)

    async def test_unsubscribe_stops_deliveries(self):
        unsubscribe = await self.store.subscribe(self.rec.on_change, self.rec.on_error)
        unsubscribe()
        await self.store.create(ObligationFields(title="GPS", date="2024-03-20"))
        self.assertEqual(len(self.rec.snapshots), 1)

    async def test_write_failure_propagates(self):
        self.collection.fail_writes = True
        with self.assertRaises(PyMongoError):
            await self.store.create(ObligationFields(title="GPS", date="2024-03-20"))

    async def test_missing_change_streams_logs_warning(self):
        with self.assertLogs("fiscal_calendar.services.obligation_store", level="WARNING") as logs:
            await self.store.subscribe(self.rec.on_change, self.rec.on_error)
            for _ in range(5):
                await asyncio.sleep(0)
        self.assertIn("Change streams unavailable", logs.output[0])
        self.assertEqual(self.rec.errors, [])


class TestLiveFeed(unittest.IsolatedAsyncioTestCase):
    async def test_changes_from_other_clients_arrive_through_change_stream(self):
        collection = FakeCollection(change_streams=True)
        viewer = ObligationStore(collection)
        other_admin = ObligationStore(collection)
        rec = Recorder()

        await viewer.subscribe(rec.on_change, rec.on_error)
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertEqual(len(collection.streams), 1)

        rec.changed.clear()
        await other_admin.create(ObligationFields(title="ICMS", date="2024-03-09", sphere="Estadual"))
        await asyncio.wait_for(rec.changed.wait(), timeout=1)
        self.assertEqual([o.title for o in rec.latest], ["ICMS"])
        viewer.close()

    async def test_write_right_after_subscribe_is_not_lost(self):
        collection = FakeCollection(change_streams=True)
        viewer = ObligationStore(collection)
        other_admin = ObligationStore(collection)
        rec = Recorder()

        await viewer.subscribe(rec.on_change, rec.on_error)
        rec.changed.clear()
        await other_admin.create(ObligationFields(title="ICMS", date="2024-03-09", sphere="Estadual"))

        await asyncio.wait_for(rec.changed.wait(), timeout=1)
        self.assertEqual([o.title for o in rec.latest], ["ICMS"])
        viewer.close()

    async def test_watch_permission_failure_reported(self):
        collection = FakeCollection(change_streams=True)
        collection.fail_watch = True
        store = ObligationStore(collection)
        rec = Recorder()

        await store.subscribe(rec.on_change, rec.on_error)
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertEqual(len(rec.errors), 1)
        self.assertEqual(rec.snapshots, [])
        self.assertEqual(collection.streams, [])
        store.close()


if __name__ == "__main__":
    unittest.main()
