"""
HTTP-level tests for the collector API
"""
import pytest
from fastapi import status

from app.services.anonymize import fingerprint

VISITOR = {"X-Forwarded-For": "203.0.113.9", "User-Agent": "Mozilla/5.0 (test)"}


def _track(client, headers=VISITOR, **overrides):
    body = {"page": "https://example.com/", "type": "pageview", "consentGiven": True, "title": "Home"}
    body.update(overrides)
    return client.post("/api/v1/track", json=body, headers=headers)


def test_track_returns_event_id(client):
    resp = _track(client)
    assert resp.status_code == status.HTTP_200_OK
    data = resp.json()
    assert data["success"] is True
    assert len(data["eventId"]) == 24


@pytest.mark.parametrize("body", [
    {"page": "not a url", "type": "pageview"},
    {"page": "https://example.com/", "type": "scroll"},
    {"type": "pageview"},
    {"page": "https://example.com/", "type": "click", "metadata": {"blob": "x" * 5000}},
])
def test_track_rejects_invalid_bodies(client, body):
    resp = client.post("/api/v1/track", json=body, headers=VISITOR)
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    data = resp.json()
    assert data["success"] is False
    assert data["code"] == "validation_error"


def test_stored_event_holds_fingerprint_not_address(client, container):
    _track(client)
    stored = container.db_manager.get_collection("events").find_one({})
    assert stored["visitor_hash"] == fingerprint("203.0.113.9", "Mozilla/5.0 (test)")
    assert "203.0.113.9" not in str(stored)


def test_end_to_end_aggregates(client, container, viewer_headers):
    _track(client)
    _track(client, type="click")
    _track(client, page="https://example.com/pricing", title="Pricing")
    _track(client, headers={**VISITOR, "X-Forwarded-For": "198.51.100.1"}, consentGiven=False)

    resp = client.get("/api/v1/events", headers=viewer_headers)
    assert resp.status_code == status.HTTP_200_OK
    data = resp.json()
    assert data["totalViews"] == 2
    assert data["totalEvents"] == 3
    assert data["uniqueVisitors"] == 1
    stats = {p["url"]: p for p in data["pageStats"]}
    assert stats["https://example.com/"] == {"url": "https://example.com/", "title": "Home", "views": 1, "clicks": 1}
    assert stats["https://example.com/pricing"]["views"] == 1
    assert len(data["recentEvents"]) == 3
    assert data["recentEvents"][0]["page"]["url"] == "https://example.com/pricing"


def test_aggregates_reflect_new_writes(client, viewer_headers):
    _track(client)
    assert client.get("/api/v1/events", headers=viewer_headers).json()["totalEvents"] == 1
    _track(client)
    assert client.get("/api/v1/events", headers=viewer_headers).json()["totalEvents"] == 2


def test_aggregates_reject_inverted_range(client, viewer_headers):
    resp = client.get(
        "/api/v1/events",
        params={"startDate": "2024-02-01T00:00:00Z", "endDate": "2024-01-01T00:00:00Z"},
        headers=viewer_headers,
    )
    assert resp.status_code == status.HTTP_400_BAD_REQUEST


def test_aggregates_respect_range(client, viewer_headers):
    _track(client)
    resp = client.get(
        "/api/v1/events",
        params={"startDate": "2000-01-01T00:00:00Z", "endDate": "2000-01-02T00:00:00Z"},
        headers=viewer_headers,
    )
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["totalEvents"] == 0


@pytest.mark.parametrize("path,method", [
    ("/api/v1/events", "get"),
    ("/api/v1/chat", "post"),
])
def test_read_endpoints_require_session(client, path, method):
    kwargs = {"json": {"question": "hi"}} if method == "post" else {}
    resp = getattr(client, method)(path, **kwargs)
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED
    resp = getattr(client, method)(path, headers={"Authorization": "Bearer nope"}, **kwargs)
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_chat_answers(client, viewer_headers):
    _track(client)
    resp = client.post("/api/v1/chat", json={"question": "Which page is popular?"}, headers=viewer_headers)
    assert resp.status_code == status.HTTP_200_OK
    data = resp.json()
    assert data["answer"]
    assert data["contextUsed"] == 1
    assert isinstance(data["usedVectorSearch"], bool)


def test_chat_validation_and_generation_errors(client, model, viewer_headers):
    resp = client.post("/api/v1/chat", json={"question": ""}, headers=viewer_headers)
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    resp = client.post("/api/v1/chat", json={"question": "   "}, headers=viewer_headers)
    assert resp.status_code == status.HTTP_400_BAD_REQUEST

    model.fail_generate = True
    resp = client.post("/api/v1/chat", json={"question": "Which page?"}, headers=viewer_headers)
    assert resp.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert resp.json()["code"] == "generation_failed"


def test_erasure_requires_admin(client, viewer_headers):
    fp = fingerprint("203.0.113.9", "Mozilla/5.0 (test)")
    assert client.delete(f"/api/v1/users/{fp}/delete").status_code == status.HTTP_403_FORBIDDEN
    resp = client.delete(f"/api/v1/users/{fp}/delete", headers=viewer_headers)
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_erasure_removes_visitor_everywhere(client, container, admin_headers):
    fp = fingerprint("203.0.113.9", "Mozilla/5.0 (test)")
    for _ in range(3):
        _track(client)
    _track(client, headers={**VISITOR, "X-Forwarded-For": "198.51.100.1"})
    assert container.embedding_queue.wait(timeout=5)
    assert container.index.count_for_fingerprint(fp) == 3

    before = client.get("/api/v1/events", headers=admin_headers).json()
    assert before["totalEvents"] == 4

    resp = client.delete(f"/api/v1/users/{fp}/delete", headers=admin_headers)
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json() == {"deleted": True, "count": 3}

    assert container.events.count_by_fingerprint(fp) == 0
    assert container.index.count_for_fingerprint(fp) == 0
    after = client.get("/api/v1/events", headers=admin_headers).json()
    assert after["totalEvents"] == 1
    assert all(e["visitorHash"] != fp for e in after["recentEvents"])

    resp = client.delete(f"/api/v1/users/{fp}/delete", headers=admin_headers)
    assert resp.json()["count"] == 0


def test_ingest_rate_limit(client, container):
    container.ingest_limiter.limit = 2
    assert _track(client).status_code == status.HTTP_200_OK
    assert _track(client).status_code == status.HTTP_200_OK

    resp = _track(client)
    assert resp.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert int(resp.headers["Retry-After"]) >= 1
    assert resp.json()["code"] == "rate_limited"

    other = {**VISITOR, "X-Forwarded-For": "198.51.100.77"}
    assert _track(client, headers=other).status_code == status.HTTP_200_OK


def test_read_rate_limit(client, container, viewer_headers):
    container.read_limiter.limit = 1
    assert client.get("/api/v1/events", headers=viewer_headers).status_code == status.HTTP_200_OK
    resp = client.get("/api/v1/events", headers=viewer_headers)
    assert resp.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert "Retry-After" in resp.headers


@pytest.mark.parametrize("action,expected", [("grant", True), ("revoke", False)])
def test_consent_acknowledgement(client, action, expected):
    resp = client.post("/api/v1/consent", json={"action": action})
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json() == {"success": True, "consent": expected}


def test_consent_rejects_unknown_action(client):
    assert client.post("/api/v1/consent", json={"action": "maybe"}).status_code == 400


def test_embedding_status_is_admin_only(client, admin_headers, viewer_headers):
    assert client.get("/api/v1/embeddings/status", headers=viewer_headers).status_code == 403
    resp = client.get("/api/v1/embeddings/status", headers=admin_headers)
    assert resp.status_code == status.HTTP_200_OK
    data = resp.json()
    assert data["indexed"] == 0
    assert set(data["queue"]) >= {"submitted", "completed", "failed", "dropped", "pending"}


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == status.HTTP_200_OK
    data = resp.json()
    assert data["status"] == "ok"
    assert data["db"] is True


def test_health_reports_unreachable_store(client, container, monkeypatch):
    monkeypatch.setattr(container.db_manager, "ping", lambda: False)
    resp = client.get("/api/health")
    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert resp.json()["status"] == "error"
