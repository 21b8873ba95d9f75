from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from studykit.core.errors import StudyKitError
from studykit.db.session import get_db
from studykit.services.jobs import get_job as load_job

router = APIRouter(prefix="/jobs", tags=["jobs"])


class JobGetResponse(BaseModel):
    ok: bool
    job_id: int
    job_type: str
    status: str
    error: str | None
    payload_json: str


@router.get("/{job_id}", response_model=JobGetResponse)
def get_job(job_id: int, db: Session = Depends(get_db)) -> JobGetResponse:
    try:
        job = load_job(db, job_id)
    except StudyKitError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    return JobGetResponse(
        ok=True,
        job_id=job.id,
        job_type=job.job_type,
        status=job.status.value,
        error=job.error,
        payload_json=job.payload_json,
    )
