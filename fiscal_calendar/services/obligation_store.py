"""
Obligation Store
Live snapshots of the obligations collection plus create/update/delete
"""
import asyncio
import logging
from typing import Any, Callable, List, Optional

from bson import ObjectId
from pymongo.errors import OperationFailure, PyMongoError

from fiscal_calendar.models.obligation import Obligation, ObligationFields

logger = logging.getLogger(__name__)

OnChange = Callable[[List[Obligation]], None]
OnError = Callable[[Exception], None]

# "The $changeStream stage is only supported on replica sets"
CHANGE_STREAM_UNSUPPORTED = 40573


def _doc_id(obligation_id: str) -> Any:
    return ObjectId(obligation_id) if ObjectId.is_valid(obligation_id) else obligation_id


class _Feed:
    """One live subscription. Inactive feeds never call back again."""

    def __init__(self, on_change: OnChange, on_error: Optional[OnError]):
        self.on_change = on_change
        self.on_error = on_error
        self.active = True
        self.task: Optional[asyncio.Task] = None

    def deliver(self, obligations: List[Obligation]) -> None:
        if self.active:
            self.on_change(obligations)

    def fail(self, exc: Exception) -> None:
        if not self.active:
            return
        self.active = False
        if self.on_error is not None:
            self.on_error(exc)

    def cancel(self) -> None:
        self.active = False
        if self.task is not None and not self.task.done():
            self.task.cancel()


class ObligationStore:
    """
    Adapter over the obligations collection.

    Every subscriber always receives the complete current list, in the order the
    collection returns it. Changes made by other processes arrive through a
    change stream; changes made through this adapter are re-delivered right
    after the write, which also covers deployments without change streams.
    """

    def __init__(self, collection):
        self.collection = collection
        self._feeds: List[_Feed] = []

    async def snapshot(self) -> List[Obligation]:
        cursor = self.collection.find({})
        docs = await cursor.to_list(length=None)
        return [Obligation.from_document(d) for d in docs]

    async def subscribe(
        self,
        on_change: OnChange,
        on_error: Optional[OnError] = None,
    ) -> Callable[[], None]:
        """
        Open a live feed. The change stream is opened before the first read, so
        a write landing between the two still reaches the subscriber. The first
        snapshot (or the read error) is delivered before this returns. The
        returned callable cancels the feed.
        """
        feed = _Feed(on_change, on_error)

        def unsubscribe() -> None:
            feed.cancel()
            if feed in self._feeds:
                self._feeds.remove(feed)

        stream = None
        try:
            stream = await self._open_stream()
            obligations = await self.snapshot()
        except PyMongoError as exc:
            logger.error(f"Error fetching obligations: {exc}")
            if stream is not None:
                await stream.close()
            feed.fail(exc)
            return unsubscribe

        self._feeds.append(feed)
        feed.deliver(obligations)
        if stream is not None:
            feed.task = asyncio.create_task(self._watch(feed, stream))
        return unsubscribe

    async def _open_stream(self):
        """Returns an open change stream, or None when the deployment has none."""
        stream = self.collection.watch()
        try:
            # changes seen here predate the snapshot that follows
            await stream.try_next()
        except OperationFailure as exc:
            if exc.code != CHANGE_STREAM_UNSUPPORTED:
                raise
            logger.warning(
                f"Change streams unavailable ({exc}); only changes made by this process will be pushed"
            )
            return None
        return stream

    async def _watch(self, feed: _Feed, stream) -> None:
        try:
            async with stream:
                async for _change in stream:
                    if not feed.active:
                        break
                    feed.deliver(await self.snapshot())
        except PyMongoError as exc:
            logger.error(f"Error watching obligations: {exc}")
            feed.fail(exc)

    async def _broadcast(self) -> None:
        feeds = [f for f in self._feeds if f.active]
        if not feeds:
            return
        try:
            obligations = await self.snapshot()
        except PyMongoError as exc:
            logger.error(f"Error refreshing obligations: {exc}")
            for feed in feeds:
                feed.fail(exc)
            return
        for feed in feeds:
            feed.deliver(obligations)

    async def create(self, fields: ObligationFields) -> Optional[str]:
        """Insert a new obligation. Returns its id, or None when title/date is empty."""
        if not fields.is_complete():
            return None
        result = await self.collection.insert_one(fields.model_dump())
        await self._broadcast()
        return str(result.inserted_id)

    async def update(self, obligation_id: str, fields: ObligationFields) -> bool:
        """Merge fields into an existing obligation. The id never changes."""
        if not fields.is_complete():
            return False
        result = await self.collection.update_one(
            {"_id": _doc_id(obligation_id)},
            {"$set": fields.model_dump()},
        )
        await self._broadcast()
        return result.matched_count > 0

    async def delete(self, obligation_id: str) -> bool:
        result = await self.collection.delete_one({"_id": _doc_id(obligation_id)})
        await self._broadcast()
        return result.deleted_count > 0

    def close(self) -> None:
        for feed in self._feeds:
            feed.cancel()
        self._feeds.clear()
