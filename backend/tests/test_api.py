"""
Backend API Tests
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from essay_grader.api.deps import get_batch_session, get_grading_service, get_store
from essay_grader.core.config import ImageConfig
from essay_grader.core.datetime_utils import today_iso
from essay_grader.schemas.grading import GradingLevel, GradingResult
from essay_grader.services.ai_providers import GeminiProvider
from essay_grader.services.batch_session import BatchSession
from essay_grader.services.essay_grading import EssayGradingService
from essay_grader.services.image_normalizer import ImageNormalizer
from main import app


async def _no_sleep(delay):
    return None


@pytest.fixture
def gemini_handler(gemini_reply):
    """Mutable handler for the mocked generateContent endpoint."""
    state = {"status": 200, "body": gemini_reply, "calls": 0}

    def handler(request):
        state["calls"] += 1
        return httpx.Response(state["status"], json=state["body"])

    handler.state = state
    return handler


@pytest.fixture
def client(store, gemini_config, gemini_handler):
    """Test client wired to the temporary store and a mocked Gemini endpoint."""
    session = BatchSession()
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(gemini_handler))

    def grading_service():
        return EssayGradingService(
            store,
            provider_factory=lambda api_key, model: GeminiProvider(
                api_key, model, config=gemini_config, client=http_client, sleep=_no_sleep
            ),
            normalizer=ImageNormalizer(ImageConfig()),
        )

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_batch_session] = lambda: session
    app.dependency_overrides[get_grading_service] = grading_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def keyed_client(client):
    response = client.put("/api/v1/settings", json={"api_key": "test-key"})
    assert response.status_code == 200
    return client


def _upload(client, make_image, count=1):
    files = [("files", (f"essay{i}.png", make_image(), "image/png")) for i in range(count)]
    return client.post("/api/v1/uploads", files=files)


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"


class TestSettingsEndpoints:
    """Test settings endpoints."""

    def test_get_defaults(self, client, gemini_config):
        data = client.get("/api/v1/settings").json()
        assert data["has_api_key"] is False
        assert data["level"] == "Primary"
        assert data["model"] == gemini_config.default_model
        assert data["is_custom_model"] is False
        assert "api_key" not in data

    def test_update_settings(self, client, store):
        response = client.put(
            "/api/v1/settings",
            json={"api_key": "abc", "level": "University", "model": "gemini-3-pro-preview"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["has_api_key"] is True
        assert data["level"] == "University"
        assert store.api_key == "abc"

    def test_custom_model(self, client, store):
        response = client.put("/api/v1/settings", json={"model": "custom", "custom_model": "my-model"})
        assert response.status_code == 200
        assert response.json()["is_custom_model"] is True
        assert store.model == "my-model"

    def test_custom_model_required(self, client, store):
        before = store.model
        response = client.put("/api/v1/settings", json={"model": "custom", "custom_model": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter a Custom Model ID"
        assert store.model == before

    def test_empty_api_key_rejected(self, client, store):
        response = client.put("/api/v1/settings", json={"api_key": ""})
        assert response.status_code == 400
        assert store.api_key == ""

    def test_invalid_level_rejected(self, client):
        response = client.put("/api/v1/settings", json={"level": "Kindergarten"})
        assert response.status_code == 422


class TestUploadEndpoints:
    """Test upload and batch analysis endpoints."""

    def test_upload_requires_api_key(self, client, make_image):
        response = _upload(client, make_image)
        assert response.status_code == 400
        assert "API Key is missing" in response.json()["detail"]

    def test_upload_creates_idle_items(self, keyed_client, make_image):
        response = _upload(keyed_client, make_image, count=2)
        assert response.status_code == 201
        data = response.json()
        assert len(data["items"]) == 2
        assert all(item["status"] == "idle" for item in data["items"])
        assert data["items"][0]["preview"].startswith("data:image/png;base64,")
        assert data["active_id"] == data["items"][0]["id"]

    def test_delete_upload(self, keyed_client, make_image):
        item_id = _upload(keyed_client, make_image).json()["items"][0]["id"]
        assert keyed_client.delete(f"/api/v1/uploads/{item_id}").status_code == 200
        assert keyed_client.get("/api/v1/uploads").json()["items"] == []
        assert keyed_client.delete(f"/api/v1/uploads/{item_id}").status_code == 404

    def test_clear_uploads(self, keyed_client, make_image):
        _upload(keyed_client, make_image, count=3)
        assert keyed_client.delete("/api/v1/uploads").status_code == 200
        assert keyed_client.get("/api/v1/uploads").json()["items"] == []

    def test_analyze_batch(self, keyed_client, make_image, store):
        _upload(keyed_client, make_image, count=2)

        response = keyed_client.post("/api/v1/uploads/analyze")

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["succeeded"] == 2
        assert all(item["status"] == "done" for item in data["items"])
        assert data["items"][0]["result"]["studentName"] == "Ann Lee"
        assert len(store.history) == 2

    def test_analyze_reports_item_errors(self, keyed_client, make_image, gemini_handler, store):
        gemini_handler.state["status"] = 403
        _upload(keyed_client, make_image)

        data = keyed_client.post("/api/v1/uploads/analyze").json()

        assert data["summary"]["failed"] == 1
        assert data["items"][0]["status"] == "error"
        assert data["items"][0]["error_msg"] == "API Key permissions denied."
        assert store.history == ()

    def test_analyze_while_running_conflicts(self, keyed_client):
        session = app.dependency_overrides[get_batch_session]()
        session.begin_batch()
        try:
            response = keyed_client.post("/api/v1/uploads/analyze")
        finally:
            session.end_batch()
        assert response.status_code == 409

    def test_cancel_when_idle(self, keyed_client):
        assert keyed_client.post("/api/v1/uploads/cancel").json() == {"cancelled": False}


class TestHistoryEndpoints:
    """Test history endpoints."""

    def _add(self, store, entry_id="one"):
        result = GradingResult.model_validate(
            {
                "studentName": "Ann",
                "title": "My Day",
                "score": 70,
                "diffText": "I {{{go|||went|||Use past tense}}} home.",
            }
        )
        return store.add_result(entry_id, result, GradingLevel.PRIMARY)

    def test_list_defaults_to_not_completed(self, client, store):
        self._add(store, "one")
        self._add(store, "two")
        store.mark_completed("one")

        pending = client.get("/api/v1/history").json()
        completed = client.get("/api/v1/history", params={"status": "completed"}).json()

        assert [entry["id"] for entry in pending] == ["two"]
        assert [entry["id"] for entry in completed] == ["one"]

    def test_complete_entry(self, client, store):
        self._add(store)
        response = client.post("/api/v1/history/one/complete")
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert client.post("/api/v1/history/missing/complete").status_code == 404

    def test_export(self, client, store):
        self._add(store)
        response = client.get("/api/v1/history/export")
        assert response.status_code == 200
        assert f"essay_grader_backup_{today_iso()}.json" in response.headers["content-disposition"]
        assert json.loads(response.text)[0]["id"] == "one"

    def test_import(self, client, store):
        self._add(store)
        response = client.post(
            "/api/v1/history/import",
            json={"json_text": json.dumps([{"studentName": "Ann", "score": 90}])},
        )
        assert response.status_code == 200
        assert response.json() == {"imported": 1, "total": 2}
        assert store.history[0].date == today_iso()

    def test_import_rejects_object(self, client):
        response = client.post("/api/v1/history/import", json={"json_text": '{"a": 1}'})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid JSON: Must be an array []"

    def test_import_rejects_garbage(self, client):
        response = client.post("/api/v1/history/import", json={"json_text": "[{oops"})
        assert response.status_code == 400
        assert response.json()["detail"] == "JSON Parse Error. Please check format."

    def test_clear(self, client, store):
        self._add(store)
        assert client.delete("/api/v1/history").status_code == 200
        assert store.history == ()

    def test_segments(self, client, store):
        self._add(store)
        segments = client.get("/api/v1/history/one/segments").json()
        assert [segment["kind"] for segment in segments] == ["text", "correction", "text"]
        assert segments[1]["original"] == "go"
        assert segments[1]["correction"] == "went"
        assert segments[1]["reason"] == "Use past tense"

    def test_report(self, client, store):
        self._add(store)
        response = client.get("/api/v1/history/one/report")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert '<del class="error">go</del>' in response.text

    def test_unknown_entry(self, client):
        assert client.get("/api/v1/history/missing").status_code == 404
        assert client.get("/api/v1/history/missing/report").status_code == 404
