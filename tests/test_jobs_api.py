import json

from fastapi.testclient import TestClient

from studykit.main import app

client = TestClient(app)
HEADERS = {"X-User-Id": "user-1"}


def test_study_kit_job_done_in_test_env(wired_registry):
    d = client.post("/documents", json={"name": "Week 1.txt", "text": "Newton's laws describe motion."}, headers=HEADERS)
    assert d.status_code == 200
    doc_id = d.json()["document_id"]

    r = client.post("/study-kits", json={"document_id": doc_id}, headers=HEADERS)
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    # ENV=test makes celery eager, so the run has finished
    assert body["status"] == "ready"

    g = client.get(f"/jobs/{body['job_id']}")
    assert g.status_code == 200
    job = g.json()
    assert job["ok"] is True
    assert job["status"] == "done"
    assert job["error"] is None
    assert json.loads(job["payload_json"])["flashcards"] == 10


def test_failed_run_marks_job_failed(wired_registry):
    d = client.post("/documents", json={"name": "empty.txt", "text": "x"}, headers=HEADERS)
    exam = client.post("/exams", json={"title": "Bad"}, headers=HEADERS).json()

    r = client.post(
        f"/exams/{exam['exam_id']}/generate",
        json={"document_ids": [d.json()["document_id"]], "types": ["haiku"]},
        headers=HEADERS,
    )
    assert r.status_code == 200
    assert r.json()["status"] == "error"

    job = client.get(f"/jobs/{r.json()['job_id']}").json()
    assert job["status"] == "failed"
    assert "Unsupported question type" in job["error"]


def test_unknown_job_404():
    r = client.get("/jobs/999999")
    assert r.status_code == 404
