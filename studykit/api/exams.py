from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from studykit.api.deps import get_providers, get_user_id
from studykit.core.errors import StudyKitError
from studykit.db.session import get_db
from studykit.models.exam import Exam
from studykit.services.documents import get_owned
from studykit.services.exams import create_exam
from studykit.services.feedback import generate_exam_feedback
from studykit.services.grading import normalize_time_spent, submit_attempt
from studykit.services.job_dispatch import dispatch_job
from studykit.services.jobs import create_job
from studykit.services.llm.providers import ProviderRegistry
from studykit.services.model_settings import policy_for

router = APIRouter(prefix="/exams", tags=["exams"])


class ExamCreateRequest(BaseModel):
    title: str
    subject: str | None = None
    difficulty: str = "medium"
    duration: int | None = Field(default=None, ge=1)


class ExamGenerateRequest(BaseModel):
    content: str | None = None
    document_ids: list[int] = []
    count: int = Field(default=10, ge=1, le=100)
    types: list[str] = ["mcq"]
    model: str = "auto"


class ExamRunResponse(BaseModel):
    ok: bool
    exam_id: int
    job_id: int
    task_id: str
    status: str


class AttemptRequest(BaseModel):
    # [[question_index, answer], ...]; answer is an option index or free text
    answers: list[Any]
    time_spent_seconds: Any = Field(default=None, alias="timeSpentSeconds")

    model_config = {"populate_by_name": True}


class FeedbackRequest(BaseModel):
    answers: list[Any] = []
    score: int | None = None
    time_spent_seconds: Any = Field(default=None, alias="timeSpentSeconds")

    model_config = {"populate_by_name": True}


def _owned_exam(db: Session, exam_id: int, user_id: str) -> Exam:
    try:
        return get_owned(db, Exam, exam_id, user_id)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)


def _exam_dict(exam: Exam) -> dict:
    return {
        "ok": True,
        "exam_id": exam.id,
        "title": exam.title,
        "subject": exam.subject,
        "difficulty": exam.difficulty,
        "duration": exam.duration,
        "status": exam.status.value,
        "score": exam.score,
        "error": exam.error,
        "questions": [
            {
                "index": q.order,
                "question": q.question,
                "options": q.options,
                "correct_answer_index": q.correct_answer_index,
                "explanation": q.explanation,
                "type": q.type,
            }
            for q in exam.questions
        ],
    }


@router.post("")
def create(
    req: ExamCreateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        exam = create_exam(
            db, user_id, req.title, subject=req.subject, difficulty=req.difficulty, duration=req.duration
        )
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return _exam_dict(exam)


@router.post("/{exam_id}/generate", response_model=ExamRunResponse)
def generate(
    exam_id: int,
    req: ExamGenerateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> ExamRunResponse:
    exam = _owned_exam(db, exam_id, user_id)
    if not (req.content or "").strip() and not req.document_ids:
        raise HTTPException(status_code=400, detail="Provide content or document_ids")

    payload = {
        "exam_id": exam.id,
        "content": req.content,
        "document_ids": req.document_ids,
        "count": req.count,
        "types": req.types,
        "model": req.model,
    }
    job = create_job(db, "generate_exam", payload)
    async_result = dispatch_job("generate_exam", {"job_id": job.id, **payload})

    db.refresh(exam)
    return ExamRunResponse(
        ok=True, exam_id=exam.id, job_id=job.id, task_id=async_result.id, status=exam.status.value
    )


@router.get("/{exam_id}")
def get_exam(
    exam_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    return _exam_dict(_owned_exam(db, exam_id, user_id))


@router.post("/{exam_id}/attempts")
def create_attempt(
    exam_id: int,
    req: AttemptRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    exam = _owned_exam(db, exam_id, user_id)
    try:
        attempt, result = submit_attempt(db, exam, user_id, req.answers, req.time_spent_seconds)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    return {
        "ok": True,
        "attempt_id": attempt.id,
        "exam_id": exam.id,
        "score": attempt.score,
        "correct": result.correct_count,
        "total": result.total,
        "answers": attempt.answers,
        "time_spent_seconds": attempt.time_spent_seconds,
        "graded": [
            {"question_index": g.question_index, "answer": g.answer, "correct": g.correct}
            for g in result.graded_answers
        ],
    }


def _feedback_inputs(db: Session, exam_id: int, user_id: str, providers: ProviderRegistry):
    exam = _owned_exam(db, exam_id, user_id)
    # loaded here so the async route never touches the session
    exam.questions
    return exam, policy_for(db, user_id, providers)


@router.post("/{exam_id}/feedback")
async def feedback(
    exam_id: int,
    req: FeedbackRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    providers: ProviderRegistry = Depends(get_providers),
):
    exam, policy = await run_in_threadpool(_feedback_inputs, db, exam_id, user_id, providers)
    try:
        text = await generate_exam_feedback(
            policy,
            exam,
            req.answers,
            score=req.score,
            time_spent_seconds=normalize_time_spent(req.time_spent_seconds),
        )
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return {"ok": True, "exam_id": exam.id, "feedback": text}
