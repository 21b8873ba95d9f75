from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from studykit.api.deps import get_user_id
from studykit.core.errors import StudyKitError
from studykit.db.session import get_db
from studykit.models.assignment import Assignment
from studykit.services.assignments import create_assignment
from studykit.services.documents import get_owned
from studykit.services.job_dispatch import dispatch_job
from studykit.services.jobs import create_job

router = APIRouter(prefix="/assignments", tags=["assignments"])


class AssignmentCreateRequest(BaseModel):
    title: str
    description: str | None = None
    document_ids: list[int] = []
    model: str = "auto"


class SolveRequest(BaseModel):
    model: str = "auto"


class AssignmentRunResponse(BaseModel):
    ok: bool
    assignment_id: int
    job_id: int
    task_id: str
    status: str


def _start_run(db: Session, assignment: Assignment, model: str) -> AssignmentRunResponse:
    payload = {"assignment_id": assignment.id, "model": model}
    job = create_job(db, "solve_assignment", payload)
    async_result = dispatch_job("solve_assignment", {"job_id": job.id, **payload})

    db.refresh(assignment)
    return AssignmentRunResponse(
        ok=True,
        assignment_id=assignment.id,
        job_id=job.id,
        task_id=async_result.id,
        status=assignment.status.value,
    )


@router.post("", response_model=AssignmentRunResponse)
def create_and_solve(
    req: AssignmentCreateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> AssignmentRunResponse:
    try:
        assignment = create_assignment(
            db, user_id, req.title, description=req.description, document_ids=req.document_ids
        )
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return _start_run(db, assignment, req.model)


@router.post("/{assignment_id}/solve", response_model=AssignmentRunResponse)
def solve(
    assignment_id: int,
    req: SolveRequest | None = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> AssignmentRunResponse:
    try:
        assignment = get_owned(db, Assignment, assignment_id, user_id)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)
    return _start_run(db, assignment, req.model if req else "auto")


@router.get("/{assignment_id}")
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        assignment = get_owned(db, Assignment, assignment_id, user_id)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    return {
        "ok": True,
        "assignment_id": assignment.id,
        "title": assignment.title,
        "description": assignment.description,
        "status": assignment.status.value,
        "solution": assignment.solution_text,
        "error": assignment.error,
        "attachments": [
            {"document_id": d.id, "name": d.name, "status": d.status.value, "error": d.error}
            for d in assignment.attachments
        ],
    }
