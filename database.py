"""
MongoDB access for the front desk.

Writes go straight through to the database. A write that fails is logged and
kept in an outbox (``DocumentStore.pending``) so the divergence between local
state and the database stays visible until ``flush()`` replays it. A failed
read raises ``StoreReadError``: an unreadable collection is never mistaken
for an empty one.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class StoreReadError(Exception):
    """A read from the database failed; the collection state is unknown."""


def connect(database_url: Optional[str], database_name: Optional[str]) -> Optional[Database]:
    if not database_url or not database_name:
        logger.warning("DATABASE_URL or DATABASE_NAME not set, running without persistence")
        return None
    client = MongoClient(database_url, serverSelectionTimeoutMS=5000)
    return client[database_name]


def serialize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    doc = dict(doc)
    doc.pop("_id", None)
    return doc


@dataclass
class PendingWrite:
    op: str  # insert, update, delete
    collection: str
    match: Dict[str, Any] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)
    error: str = ""
    attempts: int = 1


class DocumentStore:
    def __init__(self, db: Optional[Database] = None):
        self.db = db
        self.pending: List[PendingWrite] = []

    @property
    def connected(self) -> bool:
        return self.db is not None

    def insert(self, collection: str, document: Dict[str, Any]) -> bool:
        now = datetime.now(timezone.utc)
        payload = dict(document)
        payload.setdefault("created_at", now)
        payload["updated_at"] = now
        return self._write(PendingWrite("insert", collection, payload=payload))

    def update(self, collection: str, match: Dict[str, Any], fields: Dict[str, Any]) -> bool:
        payload = dict(fields)
        payload["updated_at"] = datetime.now(timezone.utc)
        return self._write(PendingWrite("update", collection, match=match, payload=payload))

    def delete(self, collection: str, match: Dict[str, Any]) -> bool:
        return self._write(PendingWrite("delete", collection, match=match))

    def find(self, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        if self.db is None:
            return []
        try:
            docs = list(self.db[collection].find(filter_dict or {}))
        except PyMongoError as e:
            logger.exception("Failed to load %s documents", collection)
            raise StoreReadError(f"Could not read {collection}: {str(e)[:200]}") from e
        return [serialize_doc(d) for d in docs]

    def flush(self) -> int:
        """Replay queued writes in order. Returns how many succeeded."""
        if self.db is None or not self.pending:
            return 0
        queued, self.pending = self.pending, []
        done = 0
        for write in queued:
            try:
                self._execute(write)
                done += 1
            except PyMongoError as e:
                write.attempts += 1
                write.error = str(e)[:200]
                self.pending.append(write)
                logger.warning("Retry of %s on %s failed (attempt %d): %s",
                               write.op, write.collection, write.attempts, write.error)
        if done:
            logger.info("Flushed %d pending writes, %d still pending", done, len(self.pending))
        return done

    def _write(self, write: PendingWrite) -> bool:
        if self.db is None:
            logger.debug("Offline, skipped %s on %s", write.op, write.collection)
            return False
        try:
            self._execute(write)
        except PyMongoError as e:
            write.error = str(e)[:200]
            self.pending.append(write)
            logger.exception("Failed to %s %s document, queued for retry", write.op, write.collection)
            return False
        return True

    def _execute(self, write: PendingWrite) -> None:
        coll = self.db[write.collection]
        if write.op == "insert":
            # insert_one mutates its argument with an _id
            coll.insert_one(dict(write.payload))
        elif write.op == "update":
            coll.update_one(write.match, {"$set": write.payload})
        elif write.op == "delete":
            coll.delete_one(write.match)
        else:
            raise ValueError(f"Unknown write op: {write.op}")
