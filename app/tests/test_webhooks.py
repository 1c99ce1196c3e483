from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app
from app.services.workflow_client import WorkflowResult, workflow_client
from app.tasks.search_store import ProfileStore


URL = "/api/webhooks/n8n"
HEADERS = {"x-n8n-webhook-secret": settings.n8n_webhook_secret}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(
        workflow_client, "trigger", AsyncMock(return_value=WorkflowResult(success=True, workflow_id="wf-1"))
    )
    return TestClient(app)


@pytest.fixture
def search_id(client):
    return client.post("/api/jobs/search", json={"query": "python"}).json()["searchId"]


def post(client: TestClient, event_type: str, payload, headers=HEADERS):
    return client.post(URL, headers=headers, json={"type": event_type, "payload": payload})


@pytest.mark.parametrize("headers", [{}, {"x-n8n-webhook-secret": "wrong"}])
def test_rejects_missing_or_wrong_secret(client, headers):
    response = post(client, "cv-parsed", {"cvId": "cv-1"}, headers=headers)

    assert response.status_code == 401


def test_unknown_event_type(client):
    response = post(client, "something-else", {})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid payload"


def test_job_matches_requires_search_id(client):
    response = post(client, "job-matches", {"userId": "u", "matches": []})

    assert response.status_code == 400


def test_job_matches_completes_search(client, search_id):
    response = post(
        client,
        "job-matches",
        {
            "searchId": search_id,
            "userId": settings.default_user_id,
            "matches": [
                {"title": "Backend Engineer", "company": "Acme"},
                {"company": "No Title"},
                {"title": "Platform Engineer", "company": "Globex", "matchScore": 81},
            ],
        },
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "processed": 2}

    status = client.get(f"/api/jobs/search/{search_id}").json()
    assert status["status"] == "completed"
    assert [(m["title"], m["keywordScore"]) for m in status["matches"]] == [
        ("Backend Engineer", 95),
        ("Platform Engineer", 81),
    ]


def test_job_matches_for_unknown_search(client):
    response = post(client, "job-matches", {"searchId": "missing", "userId": "u", "matches": []})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cv_parsed_stores_profile(client):
    response = post(client, "cv-parsed", {"cvId": "cv-9", "skills": ["Go", "Kubernetes"], "embedding": [0.5]})

    assert response.json()["processed"] == 1
    profile = await ProfileStore.get_profile(settings.default_user_id)
    assert profile.cv_id == "cv-9"
    assert profile.skills == ["Go", "Kubernetes"]


def test_search_status_update(client, search_id):
    response = post(client, "search-status", {"searchId": search_id, "status": "failed"})

    assert response.json()["processed"] == 1
    assert client.get(f"/api/jobs/search/{search_id}").json()["status"] == "failed"

    # terminal states are final
    again = post(client, "search-status", {"searchId": search_id, "status": "completed"})
    assert again.json()["processed"] == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "failed"},
        {"searchId": 42, "status": "failed"},
        {"searchId": "s", "status": "idle"},
        {"searchId": "s", "status": "exploded"},
    ],
)
def test_search_status_invalid(client, payload):
    assert post(client, "search-status", payload).status_code == 400


def test_document_generated_is_acknowledged(client):
    response = post(client, "document-generated", {"documentId": "doc-1"})

    assert response.status_code == 200
    assert response.json()["processed"] == 0
