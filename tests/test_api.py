import pytest
from fastapi.testclient import TestClient

import api.endpoints.upload as upload_endpoint
from app.container import get_evaluation_service, get_files_repository, get_llm_client, get_retriever
from app.main import app
from app.settings import settings
from domain.services.evaluation_service import EvaluationService
from tests.fakes import EvaluatorBackend, RecordingQueue, make_llm, register


@pytest.fixture
def queue():
    return RecordingQueue()


@pytest.fixture
def client(files_repo, jobs_repo, queue, empty_retriever, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "STORAGE_DIR", str(tmp_path))
    app.dependency_overrides[get_evaluation_service] = lambda: EvaluationService(files_repo, jobs_repo, queue)
    app.dependency_overrides[get_files_repository] = lambda: files_repo
    app.dependency_overrides[get_llm_client] = lambda: make_llm(register(EvaluatorBackend("gemini")))
    app.dependency_overrides[get_retriever] = lambda: empty_retriever
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestEvaluateEndpoint:
    def test_accepts_known_files(self, client, queue, stored_files):
        cv_id, report_id = stored_files
        resp = client.post("/evaluate", json={"job_title": "Backend Developer",
                                              "cv_id": cv_id, "report_id": report_id})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "QUEUED"
        assert body["id"].startswith("job_")
        assert len(queue.enqueued) == 1

    def test_unknown_cv_is_404(self, client, queue, stored_files):
        _, report_id = stored_files
        resp = client.post("/evaluate", json={"job_title": "Backend Developer",
                                              "cv_id": "file_nope", "report_id": report_id})
        assert resp.status_code == 404
        assert "CV file not found" in resp.json()["detail"]
        assert queue.enqueued == []

    def test_blank_title_is_422(self, client, stored_files):
        cv_id, report_id = stored_files
        resp = client.post("/evaluate", json={"job_title": "", "cv_id": cv_id, "report_id": report_id})
        assert resp.status_code == 422


class TestResultEndpoint:
    def test_unknown_job_is_404(self, client):
        resp = client.get("/result/job_nope")
        assert resp.status_code == 404

    def test_queued_job(self, client, jobs_repo, stored_files):
        job = jobs_repo.create_job("Backend Developer", *stored_files)
        resp = client.get(f"/result/{job.id}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "QUEUED"
        assert body["result"] is None
        assert body["attempts"] == 0


class TestUploadEndpoint:
    def test_rejects_non_pdf(self, client):
        resp = client.post("/upload", files={"cv": ("cv.txt", b"plain text", "text/plain")})
        assert resp.status_code == 400

    def test_requires_a_file(self, client):
        resp = client.post("/upload")
        assert resp.status_code == 400

    def test_stores_parsed_text(self, client, files_repo, monkeypatch):
        monkeypatch.setattr(upload_endpoint, "parse_pdf", lambda path: ("Extracted CV text", 2))
        resp = client.post("/upload", files={
            "cv": ("cv.pdf", b"%PDF-1.4 fake", "application/pdf"),
            "report": ("report.pdf", b"%PDF-1.4 fake", "application/pdf"),
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["cv"]["page_count"] == 2
        assert body["report"]["filename"] == "report.pdf"
        assert files_repo.get_text(body["cv"]["id"]) == "Extracted CV text"

    def test_rejects_oversized_file(self, client, files_repo, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 16)
        monkeypatch.setattr(upload_endpoint, "parse_pdf", lambda path: ("never parsed", 1))
        resp = client.post("/upload", files={"cv": ("cv.pdf", b"%PDF-1.4 " + b"x" * 64, "application/pdf")})
        assert resp.status_code == 400
        assert "upload limit" in resp.json()["detail"]
        assert list(tmp_path.iterdir()) == []


def test_health_lists_providers(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "llm_providers": ["gemini"], "retrieval_available": False}


def test_vector_db_health_without_qdrant(client):
    resp = client.get("/vector-db/health")
    assert resp.status_code == 503
