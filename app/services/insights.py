"""
Natural-language answers over the event log.

One request walks: embed question -> retrieve context (similarity index,
falling back to the most recent consented events) -> compose context
strings -> generate -> respond. Nothing is persisted along the way.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from app.core.config import settings
from app.core.errors import DependencyError, GenerationError, ValidationError
from app.core.llm import ModelClient
from app.repositories.embeddings import EmbeddingRepository
from app.repositories.events import EventRepository
from app.services.embeddings import EmbeddingQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsightAnswer:
    text: str
    context_size: int
    used_semantic_retrieval: bool


def describe_event(event: dict) -> str:
    timestamp = event.get("timestamp")
    ts = timestamp.isoformat() if hasattr(timestamp, "isoformat") else str(timestamp)
    return f"Event: {event.get('event_type')} on {event.get('page_url')} ({event.get('page_title')}) at {ts}"


class InsightService:
    def __init__(
        self,
        events: EventRepository,
        index: EmbeddingRepository,
        model: ModelClient,
        queue: Optional[EmbeddingQueue] = None,
        context_limit: int = settings.CHAT_CONTEXT_LIMIT,
        max_question_length: int = settings.CHAT_QUESTION_MAX_LENGTH,
    ):
        self.events = events
        self.index = index
        self.model = model
        self.queue = queue
        self.context_limit = context_limit
        self.max_question_length = max_question_length

    def _validate(self, question: str) -> str:
        if not isinstance(question, str):
            raise ValidationError("question must be a string")
        question = question.strip()
        if not 1 <= len(question) <= self.max_question_length:
            raise ValidationError(
                f"question must be 1-{self.max_question_length} characters"
            )
        return question

    def _semantic_context(self, question: str) -> List[str]:
        try:
            vector = self.model.embed(question)
        except DependencyError as e:
            logger.warning(f"Question embedding failed, using recent events: {e.message}")
            return []
        matches = self.index.nearest(vector, self.context_limit)
        return [summary for summary, _score in matches]

    def _recent_context(self) -> List[str]:
        rows = self.events.query_events(consent_only=True, limit=self.context_limit)
        return [describe_event(e) for e in rows]

    def retrieve_context(self, question: str) -> Tuple[List[str], bool]:
        context = self._semantic_context(question)
        if context:
            return context[: self.context_limit], True
        return self._recent_context()[: self.context_limit], False

    def answer(self, question: str) -> InsightAnswer:
        question = self._validate(question)

        context, used_semantic = self.retrieve_context(question)

        if self.queue is not None:
            # Detached: keeps the index filling without touching this request
            self.queue.submit_drain()

        try:
            text = self.model.generate(question, context)
        except DependencyError as e:
            logger.error(f"Answer generation failed: {e.message}", extra={"details": e.details})
            raise GenerationError(
                "Failed to generate an answer", details={"reason": e.error_code}
            ) from e

        logger.info(
            "Question answered",
            extra={"context_size": len(context), "semantic": used_semantic}
        )
        return InsightAnswer(text=text, context_size=len(context), used_semantic_retrieval=used_semantic)
