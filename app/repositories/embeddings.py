"""
Embedding repository: the similarity index over event summaries.

Rows are ``{event_id (unique), visitor_hash, embedding, summary_text,
created_at}``. Nearest-neighbour search is a cosine scan over the most
recent ``scan_limit`` rows.
"""
import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from app.core.database import DatabaseManager
from app.core.decorators import handle_db_errors, retry_on_error
from app.core.config import settings
from app.repositories.events import to_object_id, utcnow

logger = logging.getLogger(__name__)


class EmbeddingRepository:
    def __init__(self, db_manager: DatabaseManager, scan_limit: int = settings.SIMILARITY_SCAN_LIMIT):
        self.collection = db_manager.get_collection("embeddings")
        self.scan_limit = scan_limit

    @retry_on_error(retries=3)
    @handle_db_errors
    def has_embedding(self, event_id: Any) -> bool:
        oid = to_object_id(event_id)
        return oid is not None and self.collection.find_one({"event_id": oid}, {"_id": 1}) is not None

    @retry_on_error(retries=3)
    @handle_db_errors
    def upsert(
        self,
        event_id: Any,
        vector: Sequence[float],
        summary_text: str,
        visitor_hash: Optional[str] = None,
    ) -> bool:
        """Store the first embedding for an event; later writers are no-ops.

        Returns True when this call created the row.
        """
        oid = to_object_id(event_id)
        if oid is None:
            raise ValueError(f"Invalid event id: {event_id!r}")
        try:
            result = self.collection.update_one(
                {"event_id": oid},
                {"$setOnInsert": {
                    "event_id": oid,
                    "visitor_hash": visitor_hash,
                    "embedding": [float(x) for x in vector],
                    "summary_text": summary_text,
                    "created_at": utcnow(),
                }},
                upsert=True,
            )
        except DuplicateKeyError:
            return False
        return result.upserted_id is not None

    @retry_on_error(retries=3)
    @handle_db_errors
    def delete_for_event(self, event_id: Any) -> int:
        oid = to_object_id(event_id)
        if oid is None:
            return 0
        return self.collection.delete_many({"event_id": oid}).deleted_count

    @retry_on_error(retries=3)
    @handle_db_errors
    def nearest(self, query_vector: Sequence[float], k: int = 10) -> List[Tuple[str, float]]:
        """(summary_text, cosine similarity) pairs, most similar first"""
        if k < 1:
            return []
        query = np.asarray(query_vector, dtype=np.float64)
        query_norm = np.linalg.norm(query)
        if query.ndim != 1 or query_norm == 0:
            return []

        rows = list(
            self.collection.find({}, {"embedding": 1, "summary_text": 1})
            .sort("created_at", DESCENDING)
            .limit(self.scan_limit)
        )
        rows = [r for r in rows if len(r.get("embedding") or []) == query.shape[0]]
        if not rows:
            return []

        matrix = np.asarray([r["embedding"] for r in rows], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1)
        norms[norms == 0] = np.inf
        scores = matrix @ query / (norms * query_norm)

        top = np.argsort(-scores, kind="stable")[:k]
        return [(rows[i]["summary_text"], float(scores[i])) for i in top]

    @retry_on_error(retries=3)
    @handle_db_errors
    def count(self) -> int:
        return self.collection.count_documents({})

    @retry_on_error(retries=3)
    @handle_db_errors
    def count_for_fingerprint(self, visitor_hash: str) -> int:
        return self.collection.count_documents({"visitor_hash": visitor_hash})
