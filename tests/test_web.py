"""Tests for the moderation API."""

import pytest
from fastapi.testclient import TestClient

from neuroblog.core.errors import UpstreamUnavailable
from neuroblog.web.app import create_app

from conftest import FakeGenerationClient, make_suggestion

ADMIN = {"X-User-Id": "admin", "X-User-Role": "admin"}
USER = {"X-User-Id": "user-1", "X-User-Role": "user"}


@pytest.fixture
def client(manager, settings):
    app = create_app(manager=manager, settings=settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def pending_id(store):
    suggestion = make_suggestion()
    # The memory store is plain data; seed it directly outside the app's loop
    store._suggestions[suggestion.id] = suggestion
    return suggestion.id


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["api_keys"]["gemini"] is False
    assert data["auto_generation"]["running"] is False


def test_requires_admin(client):
    response = client.get("/api/ai-agent/suggestions", headers=USER)
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}

    assert client.get("/api/ai-agent/suggestions").status_code == 403


def test_generate_and_list(client):
    response = client.post("/api/ai-agent/generate-suggestions", headers=ADMIN)

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 3
    assert data["message"] == "Generated 3 blog suggestions from trending topics"

    listed = client.get("/api/ai-agent/suggestions", headers=ADMIN).json()
    assert len(listed) == 3
    assert all(s["status"] == "pending" for s in listed)


def test_auto_generate_alias(client):
    response = client.post("/api/ai-agent/auto-generate", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["count"] == 3


def test_approve_then_reject_conflicts(client, pending_id):
    response = client.post(
        f"/api/ai-agent/suggestions/{pending_id}/approve",
        headers=ADMIN,
        json={"admin_notes": "ship it", "should_publish": True},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["suggestion"]["status"] == "published"
    assert data["post"]["status"] == "published"

    response = client.post(
        f"/api/ai-agent/suggestions/{pending_id}/reject", headers=ADMIN, json={}
    )
    assert response.status_code == 409


def test_approve_as_draft(client, pending_id):
    response = client.post(
        f"/api/ai-agent/suggestions/{pending_id}/approve",
        headers=ADMIN,
        json={"should_publish": False},
    )
    assert response.status_code == 200
    assert response.json()["suggestion"]["status"] == "approved"
    assert response.json()["post"]["status"] == "draft"
    draft_id = response.json()["post"]["id"]

    response = client.post(f"/api/ai-agent/suggestions/{pending_id}/publish", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["post"]["id"] == draft_id
    assert response.json()["post"]["status"] == "published"


def test_publish_and_reject(client, store, pending_id):
    response = client.post(f"/api/ai-agent/suggestions/{pending_id}/publish", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["message"] == "Post published successfully"

    other = make_suggestion("Another Pending Idea")
    store._suggestions[other.id] = other
    response = client.post(
        f"/api/ai-agent/suggestions/{other.id}/reject",
        headers=ADMIN,
        json={"admin_notes": "not for us"},
    )
    assert response.status_code == 200
    assert response.json()["suggestion"]["moderator_notes"] == "not for us"


def test_not_found(client):
    response = client.post("/api/ai-agent/suggestions/missing/approve", headers=ADMIN)
    assert response.status_code == 404
    assert response.json() == {"error": "Suggestion not found"}

    assert client.delete("/api/ai-agent/suggestions/missing", headers=ADMIN).status_code == 404


def test_delete(client, pending_id):
    response = client.delete(f"/api/ai-agent/suggestions/{pending_id}", headers=ADMIN)
    assert response.status_code == 200
    assert client.get("/api/ai-agent/suggestions", headers=ADMIN).json() == []


def test_schedule_endpoints(client):
    response = client.post("/api/ai-agent/start-auto-generation", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["schedule"]["running"] is True

    assert client.get("/api/ai-agent/auto-generation", headers=ADMIN).json()["running"] is True

    response = client.post("/api/ai-agent/stop-auto-generation", headers=ADMIN)
    assert response.json()["schedule"]["running"] is False


def test_upstream_unavailable_is_503(manager, settings):
    manager.generator.generation_client = FakeGenerationClient(
        default=UpstreamUnavailable("overloaded", attempts=3)
    )
    app = create_app(manager=manager, settings=settings)

    with TestClient(app) as client:
        response = client.post("/api/ai-agent/generate-suggestions", headers=ADMIN)

    assert response.status_code == 503
    assert response.json() == {"error": "AI service temporarily unavailable"}


def test_generation_skipped_at_ceiling(client, store):
    for index in range(8):
        suggestion = make_suggestion(f"Backlog Item {index}", source=f"Backlog {index}")
        store._suggestions[suggestion.id] = suggestion

    response = client.post("/api/ai-agent/generate-suggestions", headers=ADMIN)

    assert response.status_code == 200
    assert response.json()["count"] == 0
    assert response.json()["message"] == "Sufficient pending suggestions already exist"
