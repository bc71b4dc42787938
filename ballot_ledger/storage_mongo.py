# ballot_ledger/storage_mongo.py
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from bson.binary import Binary
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from ballot_ledger.config import Settings
from ballot_ledger.errors import StaleStateError
from ballot_ledger.storage import StagedWrite

logger = logging.getLogger(__name__)


class MongoWorldState:
    """
    World state kept in a MongoDB collection.

    Each key is one document ``{"_id": key, "value": <binary>}``. String
    ``_id`` values sort by their UTF-8 bytes, which gives the ascending key
    order the range scan needs.

    Atomicity of a multi-key transition (a vote plus its candidate's counter)
    is only guaranteed when ``use_transactions`` is set, which requires a
    replica set or sharded cluster. Without it each checked write is still
    conditional, but a conflict on a later write leaves the earlier ones in
    place.
    """

    def __init__(self, collection: Collection, client: Optional[MongoClient] = None,
                 use_transactions: bool = False):
        self.collection = collection
        self.client = client
        self.use_transactions = use_transactions
        if use_transactions and client is None:
            raise ValueError("use_transactions requires the MongoClient")

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoWorldState":
        """Connect using MONGO_URI / MONGO_DB / MONGO_COLLECTION"""
        try:
            client = MongoClient(settings.mongo_uri)
            # Test connection
            client.server_info()
            logger.info(
                f"Connected to MongoDB at {settings.mongo_uri}, "
                f"database: {settings.mongo_db}, collection: {settings.mongo_collection}"
            )
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise
        collection = client[settings.mongo_db][settings.mongo_collection]
        return cls(collection, client=client, use_transactions=settings.mongo_use_transactions)

    def get(self, key: str) -> Optional[bytes]:
        doc = self.collection.find_one({"_id": key})
        if doc is None:
            return None
        return bytes(doc["value"])

    def put(self, key: str, value: bytes) -> None:
        self.collection.replace_one({"_id": key}, {"_id": key, "value": Binary(value)}, upsert=True)

    def scan(self, start_key: str = "", end_key: str = "") -> Iterator[Tuple[str, bytes]]:
        """
        Range scan over ``_id``.

        Args:
            start_key: Inclusive lower bound, "" for unbounded
            end_key: Exclusive upper bound, "" for unbounded

        Yields:
            (key, value) pairs in ascending key order
        """
        bounds: Dict[str, Any] = {}
        if start_key:
            bounds["$gte"] = start_key
        if end_key:
            bounds["$lt"] = end_key
        query = {"_id": bounds} if bounds else {}
        for doc in self.collection.find(query).sort("_id", ASCENDING):
            yield doc["_id"], bytes(doc["value"])

    def apply(self, writes: List[StagedWrite]) -> None:
        """
        Apply a transition's staged writes.

        Raises:
            StaleStateError: a checked write found a different stored value
        """
        if not self.use_transactions:
            self._apply_writes(writes, session=None)
            return

        with self.client.start_session() as session:
            session.with_transaction(lambda s: self._apply_writes(writes, session=s))

    def _apply_writes(self, writes: List[StagedWrite], session) -> None:
        for w in writes:
            doc = {"_id": w.key, "value": Binary(w.value)}
            if not w.checked:
                self.collection.replace_one({"_id": w.key}, doc, upsert=True, session=session)
            elif w.expected is None:
                try:
                    self.collection.insert_one(doc, session=session)
                except DuplicateKeyError:
                    logger.warning(f"Key {w.key} was created by a concurrent transition")
                    raise StaleStateError(w.key)
            else:
                result = self.collection.replace_one(
                    {"_id": w.key, "value": Binary(w.expected)}, doc, session=session
                )
                if result.matched_count == 0:
                    logger.warning(f"Key {w.key} changed since it was read")
                    raise StaleStateError(w.key)

    def close(self):
        """Close MongoDB connection"""
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
