import asyncio

from fastapi.testclient import TestClient

from studykit.api import exams as exams_api
from studykit.main import app

client = TestClient(app)
HEADERS = {"X-User-Id": "student-7"}


def _generated_exam(count=4, types=None):
    exam = client.post("/exams", json={"title": "Physics", "subject": "Science"}, headers=HEADERS).json()
    r = client.post(
        f"/exams/{exam['exam_id']}/generate",
        json={"content": "Forces and motion notes", "count": count, "types": types or ["mcq"]},
        headers=HEADERS,
    )
    assert r.status_code == 200
    return client.get(f"/exams/{exam['exam_id']}", headers=HEADERS).json()


def test_generate_then_attempt_round_trip(wired_registry):
    exam = _generated_exam(count=4)
    assert exam["status"] == "ready"
    assert [q["index"] for q in exam["questions"]] == [0, 1, 2, 3]

    answers = [[q["index"], q["correct_answer_index"]] for q in exam["questions"][:3]]
    r = client.post(
        f"/exams/{exam['exam_id']}/attempts",
        json={"answers": answers + [[4, 0]], "timeSpentSeconds": 95.6},
        headers=HEADERS,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["score"] == 75
    assert body["total"] == 4
    assert body["answers"] == answers
    assert body["time_spent_seconds"] == 95

    after = client.get(f"/exams/{exam['exam_id']}", headers=HEADERS).json()
    assert after["status"] == "completed"
    assert after["score"] == 75


def test_malformed_answers_400(wired_registry):
    exam = _generated_exam(count=1)
    r = client.post(f"/exams/{exam['exam_id']}/attempts", json={"answers": [["zero", 1]]}, headers=HEADERS)
    assert r.status_code == 400


def test_feedback_endpoint(wired_registry):
    exam = _generated_exam(count=2)
    r = client.post(
        f"/exams/{exam['exam_id']}/feedback",
        json={"answers": [[0, 3]], "score": 0, "timeSpentSeconds": 40},
        headers=HEADERS,
    )
    assert r.status_code == 200
    assert r.json()["feedback"] == "Focus on chapter 2."


def test_feedback_loads_exam_and_policy_off_the_event_loop(wired_registry, monkeypatch):
    exam = _generated_exam(count=2)
    seen = []
    real_policy_for = exams_api.policy_for

    def recording_policy_for(*args):
        try:
            asyncio.get_running_loop()
            seen.append("on loop")
        except RuntimeError:
            seen.append("worker thread")
        return real_policy_for(*args)

    monkeypatch.setattr(exams_api, "policy_for", recording_policy_for)
    r = client.post(f"/exams/{exam['exam_id']}/feedback", json={"answers": []}, headers=HEADERS)

    assert r.status_code == 200
    assert seen == ["worker thread"]


def test_generate_requires_content(wired_registry):
    exam = client.post("/exams", json={"title": "Nothing"}, headers=HEADERS).json()
    r = client.post(f"/exams/{exam['exam_id']}/generate", json={"content": "  "}, headers=HEADERS)
    assert r.status_code == 400


def test_other_users_exam_is_404(wired_registry):
    exam = _generated_exam(count=1)
    r = client.get(f"/exams/{exam['exam_id']}", headers={"X-User-Id": "intruder"})
    assert r.status_code == 404


def test_missing_user_header_401():
    r = client.post("/exams", json={"title": "x"})
    assert r.status_code == 401


def test_invalid_difficulty_400():
    r = client.post("/exams", json={"title": "x", "difficulty": "nightmare"}, headers=HEADERS)
    assert r.status_code == 400
