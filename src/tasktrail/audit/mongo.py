"""MongoDB implementation of LogStore (motor)."""

import logging
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING

from tasktrail.audit.store import LogStore
from tasktrail.models import Log
from tasktrail.utils.time import ensure_utc, utc_now

logger = logging.getLogger("tasktrail.audit.mongo")

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


class MongoLogStore(LogStore):
    """Audit records as documents in a MongoDB collection."""

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        client: AsyncIOMotorClient | None = None,
    ):
        self.collection = collection
        self._client = client

    @classmethod
    def from_url(cls, url: str, database: str, collection: str) -> "MongoLogStore":
        """Open a client and bind to ``database.collection``."""
        client = AsyncIOMotorClient(url, tz_aware=True)
        logger.info(f"Mongo log store initialized: {database}.{collection}")
        return cls(client[database][collection], client=client)

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("entity_id", ASCENDING)])
        await self.collection.create_index([("entity_type", ASCENDING)])
        await self.collection.create_index([("created_at", DESCENDING)])
        await self.collection.create_index([("entity_type", ASCENDING), ("entity_id", ASCENDING)])
        await self.collection.create_index([("action", ASCENDING)])

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()

    async def create(self, document: dict[str, Any]) -> Log:
        doc = {
            "entity_type": document["entity_type"],
            "entity_id": str(document["entity_id"]),
            "action": document["action"],
            "data": document.get("data") or {},
            "created_at": utc_now(),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._doc_to_model(doc)

    async def find_by_id(self, log_id: str) -> Log | None:
        if not ObjectId.is_valid(log_id):
            return None
        doc = await self.collection.find_one({"_id": ObjectId(log_id)})
        return self._doc_to_model(doc) if doc else None

    async def _find(self, query: dict[str, Any], limit: int) -> list[Log]:
        cursor = self.collection.find(query).sort(NEWEST_FIRST).limit(limit)
        return [self._doc_to_model(doc) async for doc in cursor]

    async def find_recent(self, limit: int = 30) -> list[Log]:
        return await self._find({}, limit)

    async def find_by_entity(
        self, entity_type: str, entity_id: str | None = None, limit: int = 30
    ) -> list[Log]:
        return await self._find(self._entity_query(entity_type, entity_id), limit)

    async def count_by_entity(self, entity_type: str, entity_id: str | None = None) -> int:
        return await self.collection.count_documents(self._entity_query(entity_type, entity_id))

    @staticmethod
    def _entity_query(entity_type: str, entity_id: str | None) -> dict[str, Any]:
        query: dict[str, Any] = {"entity_type": entity_type}
        if entity_id is not None:
            query["entity_id"] = entity_id
        return query

    @staticmethod
    def _doc_to_model(doc: dict[str, Any]) -> Log:
        return Log(
            id=str(doc["_id"]),
            entity_type=doc["entity_type"],
            entity_id=doc["entity_id"],
            action=doc["action"],
            data=doc.get("data") or {},
            created_at=ensure_utc(doc["created_at"]),
        )
