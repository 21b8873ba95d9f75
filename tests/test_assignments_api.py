from fastapi.testclient import TestClient

from studykit.main import app

client = TestClient(app)
HEADERS = {"X-User-Id": "user-9"}


def test_assignment_with_description_only_completes(wired_registry):
    r = client.post(
        "/assignments",
        json={"title": "Essay 1", "description": "Compare mitosis and meiosis"},
        headers=HEADERS,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "completed"

    g = client.get(f"/assignments/{body['assignment_id']}", headers=HEADERS).json()
    assert g["solution"].startswith("Step 1")
    assert g["error"] is None


def test_empty_assignment_errors_then_retry_with_attachment(wired_registry):
    r = client.post("/assignments", json={"title": "Blank"}, headers=HEADERS).json()
    assert r["status"] == "error"
    assignment_id = r["assignment_id"]

    d = client.post(
        "/documents",
        json={"name": "worksheet.txt", "text": "1) Solve x + 2 = 5", "assignment_id": assignment_id},
        headers=HEADERS,
    )
    assert d.status_code == 200

    retry = client.post(f"/assignments/{assignment_id}/solve", json={"model": "fast"}, headers=HEADERS)
    assert retry.status_code == 200
    assert retry.json()["status"] == "completed"

    g = client.get(f"/assignments/{assignment_id}", headers=HEADERS).json()
    assert [a["name"] for a in g["attachments"]] == ["worksheet.txt"]


def test_document_requires_url_or_text():
    r = client.post("/documents", json={"name": "nothing.pdf"}, headers=HEADERS)
    assert r.status_code == 400
