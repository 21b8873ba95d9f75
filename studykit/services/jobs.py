import json
from typing import Any

from sqlalchemy.orm import Session

from studykit.core.errors import NotFoundError
from studykit.models.job import Job
from studykit.models.status import JobStatus, transition


def create_job(db: Session, job_type: str, payload: dict) -> Job:
    job = Job(
        job_type=job_type,
        status=JobStatus.queued,
        payload_json=json.dumps(payload or {}, ensure_ascii=False),
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def get_job(db: Session, job_id: int) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError(f"Job not found: {job_id}")
    return job


def set_job_status(db: Session, job_id: int, status: JobStatus, error: str | None = None) -> Job:
    job = get_job(db, job_id)
    transition(job, status)
    job.error = error
    db.commit()
    db.refresh(job)
    return job


def get_job_payload(db: Session, job_id: int) -> dict[str, Any]:
    job = get_job(db, job_id)
    try:
        data = json.loads(job.payload_json or "{}")
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def merge_job_payload(db: Session, job_id: int, patch: dict[str, Any]) -> Job:
    """
    Merge a patch into payload_json.
    - Keeps existing keys
    - Overwrites keys present in patch
    """
    base = get_job_payload(db, job_id)
    for k, v in (patch or {}).items():
        base[k] = v

    job = get_job(db, job_id)
    job.payload_json = json.dumps(base, ensure_ascii=False)
    db.commit()
    db.refresh(job)
    return job
