import pytest

from app.core.errors import GenerationError, ValidationError


def _seed(container, n=3):
    page = container.events.create_page_if_absent("https://example.com/", "Home Page")
    ids = []
    for i in range(n):
        event = container.events.record_event(
            page_id=page["_id"],
            event_type="pageview",
            visitor_hash=f"v{i}",
            user_agent="ua",
            consent_given=True,
        )
        ids.append(event["_id"])
    return ids


def test_falls_back_to_recent_events_when_index_empty(container, model):
    _seed(container)
    answer = container.insights.answer("Which page is most popular?")
    assert not answer.used_semantic_retrieval
    assert answer.context_size == 3
    _, context = model.generate_calls[0]
    assert all(c.startswith("Event: pageview on https://example.com/") for c in context)


def test_uses_similarity_index_when_populated(container, model):
    for event_id in _seed(container):
        container.embeddings.create_event_embedding(event_id)

    answer = container.insights.answer("How many page views?")
    assert answer.used_semantic_retrieval
    assert answer.context_size == 3
    _, context = model.generate_calls[0]
    assert all(c.startswith("Event type: pageview") for c in context)


def test_question_embedding_failure_falls_back(container, model):
    for event_id in _seed(container):
        container.embeddings.create_event_embedding(event_id)
    model.fail_embed = True

    answer = container.insights.answer("What happened today?")
    assert not answer.used_semantic_retrieval
    assert answer.context_size == 3


def test_context_is_bounded(container, model):
    _seed(container, n=5)
    container.insights.context_limit = 2
    assert container.insights.answer("Anything?").context_size == 2


def test_answer_with_no_events(container):
    answer = container.insights.answer("Anything?")
    assert answer.context_size == 0
    assert answer.text


@pytest.mark.parametrize("question", ["", "   ", "x" * 501])
def test_invalid_questions_are_rejected(container, model, question):
    with pytest.raises(ValidationError):
        container.insights.answer(question)
    assert model.generate_calls == []


def test_generation_failure_raises_generation_error(container, model):
    _seed(container)
    model.fail_generate = True
    with pytest.raises(GenerationError) as exc_info:
        container.insights.answer("Which page?")
    assert exc_info.value.status_code == 503


def test_answer_schedules_backlog_drain(container, model):
    ids = _seed(container)
    container.insights.answer("Which page?")
    assert container.embedding_queue.wait(timeout=5)
    assert all(container.index.has_embedding(i) for i in ids)
