# fiscal_calendar/db.py
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection

from fiscal_calendar.config import BackendConfig


def obligations_collection_name(app_id: str) -> str:
    return f"artifacts.{app_id}.public.data.obligations"


def subscribers_collection_name(app_id: str) -> str:
    return f"artifacts.{app_id}.public.data.subscribers"


class Database:
    """
    Handle on the document database. Built once at startup and passed to
    every adapter; tests substitute an in-memory object with the same
    `obligations` / `subscribers` / `close()` surface.
    """

    def __init__(self, client: AsyncIOMotorClient, db_name: str, app_id: str):
        self._client: Optional[AsyncIOMotorClient] = client
        self._db: AsyncIOMotorDatabase = client[db_name]
        self.app_id = app_id

    @classmethod
    def connect(cls, backend: BackendConfig, app_id: str) -> "Database":
        client = AsyncIOMotorClient(backend.mongo_uri, tz_aware=True)
        return cls(client, backend.mongo_db_name, app_id)

    def get_collection(self, name: str) -> AsyncIOMotorCollection:
        """
        Usage: db.get_collection('x'); await coll.find_one({...})
        """
        return self._db[name]

    @property
    def obligations(self) -> AsyncIOMotorCollection:
        return self.get_collection(obligations_collection_name(self.app_id))

    @property
    def subscribers(self) -> AsyncIOMotorCollection:
        return self.get_collection(subscribers_collection_name(self.app_id))

    def close(self) -> None:
        """
        Close the motor client - call this on application shutdown.
        """
        if self._client is not None:
            self._client.close()
            self._client = None
