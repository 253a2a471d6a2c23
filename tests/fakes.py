"""In-memory stand-ins for the Motor collections used by the app."""
import asyncio
from types import SimpleNamespace
from typing import Any, Dict, List

from bson import ObjectId
from pymongo.errors import OperationFailure


class FakeCursor:
    def __init__(self, docs: List[dict]):
        self._docs = docs

    async def to_list(self, length=None):
        return [dict(d) for d in self._docs]


class FakeChangeStream:
    """Opens on the first try_next/iteration, like Motor's change stream."""

    def __init__(self, collection: "FakeCollection"):
        self._collection = collection
        self._queue: asyncio.Queue = asyncio.Queue()
        self._opened = False

    def _open(self):
        if self._opened:
            return
        if self._collection.fail_watch:
            raise OperationFailure("not authorized to watch", code=13)
        if not self._collection.change_streams:
            raise OperationFailure(
                "The $changeStream stage is only supported on replica sets", code=40573
            )
        self._collection.streams.append(self)
        self._opened = True

    async def try_next(self):
        self._open()
        if self._queue.empty():
            return None
        return self._queue.get_nowait()

    async def close(self):
        if self in self._collection.streams:
            self._collection.streams.remove(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()
        return False

    def __aiter__(self):
        return self

    async def __anext__(self):
        self._open()
        return await self._queue.get()


class FakeCollection:
    def __init__(self, change_streams: bool = False):
        self.docs: Dict[Any, dict] = {}
        self.change_streams = change_streams
        self.fail_reads = False
        self.fail_writes = False
        self.fail_watch = False
        self.streams: List[FakeChangeStream] = []

    def _check_reads(self):
        if self.fail_reads:
            raise OperationFailure("not authorized", code=13)

    def _check_writes(self):
        if self.fail_writes:
            raise OperationFailure("not authorized", code=13)

    def _emit(self, operation: str):
        for stream in list(self.streams):
            stream._queue.put_nowait({"operationType": operation})

    def find(self, filter=None):
        self._check_reads()
        return FakeCursor(list(self.docs.values()))

    async def find_one(self, filter):
        self._check_reads()
        doc = self.docs.get(filter["_id"])
        return dict(doc) if doc else None

    async def insert_one(self, doc):
        self._check_writes()
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = doc
        self._emit("insert")
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, filter, update):
        self._check_writes()
        doc = self.docs.get(filter["_id"])
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        doc.update(update["$set"])
        self._emit("update")
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, filter):
        self._check_writes()
        removed = self.docs.pop(filter["_id"], None)
        if removed is not None:
            self._emit("delete")
        return SimpleNamespace(deleted_count=1 if removed is not None else 0)

    async def replace_one(self, filter, replacement, upsert=False):
        self._check_writes()
        key = filter["_id"]
        exists = key in self.docs
        if exists or upsert:
            self.docs[key] = {"_id": key, **replacement}
            self._emit("replace")
        upserted_id = key if upsert and not exists else None
        return SimpleNamespace(matched_count=1 if exists else 0, upserted_id=upserted_id)

    def watch(self):
        return FakeChangeStream(self)


class FakeDatabase:
    def __init__(self, change_streams: bool = False):
        self.obligations = FakeCollection(change_streams=change_streams)
        self.subscribers = FakeCollection()
        self.closed = False

    def close(self):
        self.closed = True
