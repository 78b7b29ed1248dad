import httpx
import pytest

from app.core.config import LLMConfig
from app.core.errors import PermanentDependencyError, TransientDependencyError
from app.core.llm import ModelClient


def _client(handler, **config):
    config.setdefault("EMBEDDING_DIMENSIONS", 3)
    config.setdefault("MAX_RETRIES", 2)
    cfg = LLMConfig(API_KEY="test-key", BASE_URL="https://models.test/v1", **config)
    http = httpx.Client(base_url=cfg.BASE_URL, transport=httpx.MockTransport(handler))
    return ModelClient(config=cfg, http_client=http)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("app.core.llm.time.sleep", lambda _: None)


def test_embed_returns_vector_and_sends_key():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["path"] = request.url.path
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3]}]})

    assert _client(handler).embed("hello") == [0.1, 0.2, 0.3]
    assert seen == {"auth": "Bearer test-key", "path": "/v1/embeddings"}


def test_embed_rejects_wrong_dimensions():
    client = _client(lambda r: httpx.Response(200, json={"data": [{"embedding": [0.1]}]}))
    with pytest.raises(PermanentDependencyError):
        client.embed("hello")


def test_embed_rejects_empty_text_without_calling():
    calls = []
    client = _client(lambda r: calls.append(r) or httpx.Response(200, json={}))
    with pytest.raises(PermanentDependencyError):
        client.embed("  ")
    assert calls == []


def test_transient_status_is_retried():
    responses = [
        httpx.Response(503),
        httpx.Response(429),
        httpx.Response(200, json={"data": [{"embedding": [1, 2, 3]}]}),
    ]
    client = _client(lambda r: responses.pop(0))
    assert client.embed("hello") == [1.0, 2.0, 3.0]
    assert responses == []


def test_transient_errors_exhaust_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(TransientDependencyError):
        _client(handler, MAX_RETRIES=1).embed("hello")
    assert len(calls) == 2


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": "bad"})

    with pytest.raises(PermanentDependencyError):
        _client(handler).generate("q", [])
    assert len(calls) == 1


def test_generate_sends_context_and_returns_content():
    seen = {}

    def handler(request):
        seen["body"] = request.read().decode()
        return httpx.Response(200, json={"choices": [{"message": {"content": "42 views"}}]})

    assert _client(handler).generate("How many?", ["ctx one", "ctx two"]) == "42 views"
    assert "ctx one" in seen["body"]
    assert "How many?" in seen["body"]


def test_generate_handles_empty_content():
    client = _client(lambda r: httpx.Response(200, json={"choices": [{"message": {"content": None}}]}))
    assert client.generate("q", []) == "I couldn't generate a response."


def test_malformed_json_is_permanent():
    client = _client(lambda r: httpx.Response(200, content=b"not json"))
    with pytest.raises(PermanentDependencyError):
        client.generate("q", [])
