"""
Aggregate analytics over consented events, read through the shared cache
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.cache import AnalyticsCache, range_key
from app.core.config import settings
from app.repositories.events import EventRepository, decode_metadata, to_naive_utc

logger = logging.getLogger(__name__)


def serialize_event(event: dict) -> Dict[str, Any]:
    """Display form of one event for the dashboard"""
    timestamp = event.get("timestamp")
    return {
        "id": str(event.get("_id")),
        "eventType": event.get("event_type"),
        "visitorHash": event.get("visitor_hash"),
        "userAgent": event.get("user_agent"),
        "metadata": decode_metadata(event.get("metadata_json")),
        "consentGiven": bool(event.get("consent_given")),
        "timestamp": timestamp.isoformat() if hasattr(timestamp, "isoformat") else timestamp,
        "page": {
            "id": str(event.get("page_id")),
            "url": event.get("page_url"),
            "title": event.get("page_title"),
        },
    }


def compute_aggregates(events: List[dict], recent_limit: int = settings.RECENT_EVENTS_LIMIT) -> Dict[str, Any]:
    """Rollup of an already newest-first event list"""
    page_stats: Dict[str, Dict[str, Any]] = {}
    total_views = 0
    visitors = set()

    for e in events:
        url = e.get("page_url")
        stats = page_stats.setdefault(url, {
            "url": url,
            "title": e.get("page_title"),
            "views": 0,
            "clicks": 0,
        })
        if e.get("event_type") == "pageview":
            stats["views"] += 1
            total_views += 1
        elif e.get("event_type") == "click":
            stats["clicks"] += 1
        visitors.add(e.get("visitor_hash"))

    return {
        "totalViews": total_views,
        "uniqueVisitors": len(visitors),
        "totalEvents": len(events),
        "pageStats": list(page_stats.values()),
        "recentEvents": [serialize_event(e) for e in events[:recent_limit]],
    }


class AnalyticsService:
    def __init__(self, events: EventRepository, cache: AnalyticsCache):
        self.events = events
        self.cache = cache

    def get_aggregates(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
        start, end = to_naive_utc(start), to_naive_utc(end)

        def _load():
            logger.debug("Aggregate cache miss", extra={"start": start, "end": end})
            rows = self.events.query_events(start, end, consent_only=True, limit=settings.QUERY_EVENT_LIMIT)
            return compute_aggregates(rows)

        return self.cache.get_or_set(range_key(start, end), _load)
