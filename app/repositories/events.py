"""
Event repository for MongoDB operations

Owns the ``pages`` dimension table and the append-only ``events`` log.
Erasure also clears the matching ``event_embeddings`` rows.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.database import DatabaseManager
from app.core.decorators import handle_db_errors, retry_on_error
from app.models.event import serialize_metadata

logger = logging.getLogger(__name__)

MAX_QUERY_ROWS = 1000


def utcnow() -> datetime:
    """Naive UTC timestamp, the form pymongo hands back"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to naive UTC for Mongo comparisons"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def decode_metadata(raw: Any) -> Dict[str, Any]:
    """Display form of the stored metadata blob"""
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw or "{}")
    except (TypeError, ValueError):
        return {}
    return value if isinstance(value, dict) else {}


class EventRepository:
    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.pages = db_manager.get_collection("pages")
        self.collection = db_manager.get_collection("events")
        self.embeddings = db_manager.get_collection("embeddings")

    @retry_on_error(retries=3)
    @handle_db_errors
    def create_page_if_absent(self, url: str, title: Optional[str] = None) -> dict:
        """Idempotent upsert keyed by the unique page URL"""
        try:
            page = self.pages.find_one_and_update(
                {"url": url},
                {"$setOnInsert": {
                    "url": url,
                    "title": title or url,
                    "created_at": utcnow(),
                }},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Lost the insert race; the winner's row is authoritative
            page = self.pages.find_one({"url": url})

        if title and page.get("title") == url and title != url:
            # Title backfill is the only mutation a page accepts
            backfilled = self.pages.find_one_and_update(
                {"_id": page["_id"], "title": url},
                {"$set": {"title": title}},
                return_document=ReturnDocument.AFTER,
            )
            if backfilled:
                page = backfilled
        return page

    @handle_db_errors
    def record_event(
        self,
        page_id: ObjectId,
        event_type: str,
        visitor_hash: str,
        user_agent: str,
        metadata: Optional[Dict[str, Any]] = None,
        consent_given: bool = False,
    ) -> dict:
        """Append one event. Not retried: a blind retry could double-insert."""
        event = {
            "page_id": page_id,
            "event_type": event_type,
            "visitor_hash": visitor_hash,
            "user_agent": user_agent,
            "metadata_json": serialize_metadata(metadata),
            "consent_given": bool(consent_given),
            "timestamp": utcnow(),
        }
        result = self.collection.insert_one(event)
        event["_id"] = result.inserted_id
        return event

    def _attach_pages(self, events: List[dict]) -> List[dict]:
        page_ids = list({e["page_id"] for e in events if e.get("page_id") is not None})
        pages = {p["_id"]: p for p in self.pages.find({"_id": {"$in": page_ids}})} if page_ids else {}
        for e in events:
            page = pages.get(e.get("page_id")) or {}
            e["page_url"] = page.get("url")
            e["page_title"] = page.get("title")
        return events

    @retry_on_error(retries=3)
    @handle_db_errors
    def query_events(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        consent_only: bool = True,
        limit: int = MAX_QUERY_ROWS,
    ) -> List[dict]:
        """Events in [start, end], newest first, joined with their page"""
        query: Dict[str, Any] = {}
        if consent_only:
            query["consent_given"] = True

        ts_filter = {}
        if start is not None:
            ts_filter["$gte"] = to_naive_utc(start)
        if end is not None:
            ts_filter["$lte"] = to_naive_utc(end)
        if ts_filter:
            query["timestamp"] = ts_filter

        limit = max(1, min(int(limit), MAX_QUERY_ROWS))
        cursor = self.collection.find(query).sort([("timestamp", DESCENDING), ("_id", DESCENDING)]).limit(limit)
        return self._attach_pages(list(cursor))

    @retry_on_error(retries=3)
    @handle_db_errors
    def get_event(self, event_id: Any) -> Optional[dict]:
        oid = to_object_id(event_id)
        if oid is None:
            return None
        event = self.collection.find_one({"_id": oid})
        if event is None:
            return None
        return self._attach_pages([event])[0]

    @retry_on_error(retries=3)
    @handle_db_errors
    def events_missing_embeddings(self, limit: int = 10) -> List[ObjectId]:
        """Newest consented event ids that have no embedding row yet"""
        missing: List[ObjectId] = []
        batch_size = max(limit * 5, 100)
        cursor = self.collection.find({"consent_given": True}, {"_id": 1}).sort(
            [("timestamp", DESCENDING), ("_id", DESCENDING)]
        )
        batch: List[ObjectId] = []

        def _flush():
            embedded = {
                d["event_id"]
                for d in self.embeddings.find({"event_id": {"$in": batch}}, {"event_id": 1})
            }
            for oid in batch:
                if oid not in embedded and len(missing) < limit:
                    missing.append(oid)

        for doc in cursor:
            batch.append(doc["_id"])
            if len(batch) >= batch_size:
                _flush()
                batch = []
                if len(missing) >= limit:
                    break
        if batch and len(missing) < limit:
            _flush()
        return missing

    @retry_on_error(retries=3)
    @handle_db_errors
    def count_by_fingerprint(self, visitor_hash: str) -> int:
        return self.collection.count_documents({"visitor_hash": visitor_hash})

    def _erase(self, visitor_hash: str, session=None) -> int:
        opts = {"session": session} if session is not None else {}
        event_ids = [
            d["_id"]
            for d in self.collection.find({"visitor_hash": visitor_hash}, {"_id": 1}, **opts)
        ]
        # Events first; a late embedding write finds its event gone
        result = self.collection.delete_many({"visitor_hash": visitor_hash}, **opts)
        self.embeddings.delete_many(
            {"$or": [{"visitor_hash": visitor_hash}, {"event_id": {"$in": event_ids}}]},
            **opts
        )
        return result.deleted_count

    @handle_db_errors
    def delete_by_fingerprint(self, visitor_hash: str) -> int:
        """Erase every event (and embedding) of one visitor, all or nothing"""
        if not self.db_manager.use_transactions:
            return self._erase(visitor_hash)

        with self.db_manager.client.start_session() as session:
            return session.with_transaction(lambda s: self._erase(visitor_hash, session=s))
