from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from studykit.api.deps import get_user_id
from studykit.core.errors import StudyKitError
from studykit.db.session import get_db
from studykit.models.study_kit import StudyKit
from studykit.services.documents import get_owned
from studykit.services.job_dispatch import dispatch_job
from studykit.services.jobs import create_job
from studykit.services.study_kits import create_study_kit

router = APIRouter(prefix="/study-kits", tags=["study_kits"])


class StudyKitCreateRequest(BaseModel):
    document_id: int
    model: str = "auto"


class StudyKitRunResponse(BaseModel):
    ok: bool
    study_kit_id: int
    job_id: int
    task_id: str
    status: str


def _start_run(db: Session, kit: StudyKit) -> StudyKitRunResponse:
    job = create_job(db, "process_study_kit", {"study_kit_id": kit.id})
    async_result = dispatch_job("process_study_kit", {"job_id": job.id, "study_kit_id": kit.id})

    db.refresh(kit)
    return StudyKitRunResponse(
        ok=True,
        study_kit_id=kit.id,
        job_id=job.id,
        task_id=async_result.id,
        status=kit.status.value,
    )


@router.post("", response_model=StudyKitRunResponse)
def create_and_process(
    req: StudyKitCreateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> StudyKitRunResponse:
    try:
        kit = create_study_kit(db, user_id, req.document_id, req.model)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return _start_run(db, kit)


@router.post("/{study_kit_id}/retry", response_model=StudyKitRunResponse)
def retry(
    study_kit_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> StudyKitRunResponse:
    try:
        kit = get_owned(db, StudyKit, study_kit_id, user_id)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return _start_run(db, kit)


@router.get("/{study_kit_id}")
def get_study_kit(
    study_kit_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        kit = get_owned(db, StudyKit, study_kit_id, user_id)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    return {
        "ok": True,
        "study_kit_id": kit.id,
        "title": kit.title,
        "status": kit.status.value,
        "error": kit.error,
        "model": kit.model,
        "source_document_id": kit.source_document_id,
        "summary": kit.summary_text,
        "flashcards": [
            {"question": fc.question, "answer": fc.answer, "order": fc.order} for fc in kit.flashcards
        ],
        "quiz": [
            {
                "question": q.question,
                "options": q.options,
                "correct_answer_index": q.correct_answer_index,
                "explanation": q.explanation,
                "type": q.type,
                "order": q.order,
            }
            for q in kit.quiz_questions
        ],
    }
