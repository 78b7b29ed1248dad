"""
Event embedding generation.

``EmbeddingService`` turns one event into a summary + vector and stores it in
the similarity index. ``EmbeddingQueue`` is the bounded worker pool the
request path hands work to: submitting never blocks and never raises, and a
full backlog drops the job (the out-of-process drain picks it up later).
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Optional

from app.core.config import settings
from app.core.errors import DependencyError
from app.core.llm import ModelClient
from app.repositories.embeddings import EmbeddingRepository
from app.repositories.events import EventRepository, decode_metadata

logger = logging.getLogger(__name__)


def summarize_event(event: dict) -> str:
    """Text that gets embedded for one event"""
    page = event.get("page_title") or event.get("page_url") or "unknown page"
    timestamp = event.get("timestamp")
    ts = timestamp.isoformat() if hasattr(timestamp, "isoformat") else str(timestamp)
    metadata = decode_metadata(event.get("metadata_json"))
    return (
        f"Event type: {event.get('event_type')}, Page: {page}, "
        f"Timestamp: {ts}, Metadata: {metadata}"
    )


class EmbeddingService:
    def __init__(self, events: EventRepository, index: EmbeddingRepository, model: ModelClient):
        self.events = events
        self.index = index
        self.model = model

    def create_event_embedding(self, event_id: Any) -> bool:
        """Embed one event. Returns True when a new index row was written.

        Events that are missing, unconsented or already embedded are skipped.
        """
        if self.index.has_embedding(event_id):
            return False
        event = self.events.get_event(event_id)
        if event is None or not event.get("consent_given"):
            return False

        summary = summarize_event(event)
        vector = self.model.embed(summary)
        created = self.index.upsert(
            event["_id"], vector, summary, visitor_hash=event.get("visitor_hash")
        )
        if created and self.events.get_event(event["_id"]) is None:
            # Erased while the model call was in flight
            self.index.delete_for_event(event["_id"])
            logger.info(f"Event {event_id} erased during embedding, row removed")
            return False
        return created

    def drain_backlog(self, limit: int = settings.EMBEDDING_DRAIN_BATCH) -> Dict[str, int]:
        """Synchronously embed up to ``limit`` events lacking an embedding"""
        created = skipped = failed = 0
        for event_id in self.events.events_missing_embeddings(limit=limit):
            try:
                if self.create_event_embedding(event_id):
                    created += 1
                else:
                    skipped += 1
            except DependencyError as e:
                failed += 1
                logger.warning(f"Embedding failed for event {event_id}: {e.message}")
        return {"created": created, "skipped": skipped, "failed": failed}


class EmbeddingQueue:
    """Bounded fire-and-forget executor for embedding jobs"""

    def __init__(
        self,
        service: EmbeddingService,
        max_workers: int = settings.EMBEDDING_WORKERS,
        max_backlog: int = settings.EMBEDDING_MAX_BACKLOG,
    ):
        self.service = service
        self.max_backlog = max_backlog
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="embed")
        self._lock = threading.Lock()
        self._pending: set = set()
        self._stats = {"submitted": 0, "completed": 0, "failed": 0, "dropped": 0}
        self._closed = False

    def _run(self, job: Callable[[], Any], label: str) -> Any:
        try:
            result = job()
        except Exception:
            # Embedding failures degrade the index, never the caller
            with self._lock:
                self._stats["failed"] += 1
            logger.exception(f"Embedding job failed: {label}")
            return None
        with self._lock:
            self._stats["completed"] += 1
        return result

    def _submit(self, job: Callable[[], Any], label: str) -> Optional[Future]:
        with self._lock:
            if self._closed:
                self._stats["dropped"] += 1
                return None
            if self._backlog() >= self.max_backlog:
                self._stats["dropped"] += 1
                logger.warning(f"Embedding backlog full ({self.max_backlog}), dropping {label}")
                return None
            self._stats["submitted"] += 1
            future = self._executor.submit(self._run, job, label)
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _backlog(self) -> int:
        # done futures linger until their callback runs
        return sum(1 for f in self._pending if not f.done())

    def _discard(self, future: Future):
        with self._lock:
            self._pending.discard(future)

    def submit_event(self, event_id: Any) -> Optional[Future]:
        """Schedule embedding of one event"""
        return self._submit(
            lambda: self.service.create_event_embedding(event_id), f"event {event_id}"
        )

    def submit_drain(self, limit: int = settings.EMBEDDING_DRAIN_BATCH) -> Optional[Future]:
        """Schedule a bounded backlog drain"""
        return self._submit(lambda: self.service.drain_backlog(limit), f"drain({limit})")

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {**self._stats, "pending": self._backlog()}

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every job submitted so far finishes. True if idle."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_jobs: bool = True):
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait_for_jobs)
