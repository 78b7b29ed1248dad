"""
Event ingestion service
"""
import logging
from typing import Optional

from app.core.cache import AnalyticsCache
from app.models.event import TrackRequest
from app.repositories.events import EventRepository
from app.services.anonymize import fingerprint
from app.services.embeddings import EmbeddingQueue

logger = logging.getLogger(__name__)


class IngestService:
    def __init__(
        self,
        events: EventRepository,
        cache: AnalyticsCache,
        queue: Optional[EmbeddingQueue] = None,
    ):
        self.events = events
        self.cache = cache
        self.queue = queue

    def track(self, request: TrackRequest, address: str, user_agent: str) -> str:
        """
        Persist one tracked action and return its id.

        Order within one event: write, then cache invalidation, then the
        embedding is scheduled. Only consented events are embedded.
        """
        visitor_hash = fingerprint(address, user_agent)
        page = self.events.create_page_if_absent(request.page, request.title)
        event = self.events.record_event(
            page_id=page["_id"],
            event_type=request.type.value,
            visitor_hash=visitor_hash,
            user_agent=user_agent,
            metadata=request.metadata,
            consent_given=request.consent_given,
        )
        event_id = str(event["_id"])

        self.cache.invalidate_all()

        if request.consent_given and self.queue is not None:
            self.queue.submit_event(event["_id"])

        logger.info(
            "Event recorded",
            extra={"event_id": event_id, "event_type": request.type.value, "consent": request.consent_given}
        )
        return event_id
