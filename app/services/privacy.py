"""
Right-to-erasure handling
"""
import logging

from app.core.cache import AnalyticsCache
from app.core.errors import ValidationError
from app.repositories.events import EventRepository

logger = logging.getLogger(__name__)


class PrivacyService:
    def __init__(self, events: EventRepository, cache: AnalyticsCache):
        self.events = events
        self.cache = cache

    def erase_visitor(self, visitor_hash: str) -> int:
        """Delete every event and embedding tied to one fingerprint.

        The fingerprint is taken as given; admins look it up out of band.
        """
        visitor_hash = (visitor_hash or "").strip()
        if not visitor_hash:
            raise ValidationError("fingerprint is required")

        count = self.events.delete_by_fingerprint(visitor_hash)
        self.cache.invalidate_all()
        logger.info("Visitor data erased", extra={"deleted_events": count})
        return count
