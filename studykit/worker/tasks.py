from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from studykit.core.config import settings
from studykit.core.logger import get_logger
from studykit.db.session import SessionLocal
from studykit.models.status import JobStatus
from studykit.services import lifecycle
from studykit.services.jobs import merge_job_payload, set_job_status
from studykit.services.llm.providers import ProviderRegistry, build_providers
from studykit.worker.celery_app import celery_app

logger = get_logger(__name__)


T = TypeVar("T")


def worker_providers() -> ProviderRegistry:
    """Provider clients for one task run, built from settings."""
    return build_providers(settings)


def run_pipeline(run: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
    """
    Drive one lifecycle coroutine to completion on a fresh event loop.

    Provider clients hold connection pools tied to the loop that opened them, so they
    are built inside the loop and closed before it ends.
    """

    async def _main() -> T:
        providers = worker_providers()
        try:
            return await run(*args, providers=providers, **kwargs)
        finally:
            await providers.aclose()

    return asyncio.run(_main())


def _fail(db: Session, job_id: int, e: Exception) -> None:
    db.rollback()
    err = getattr(e, "message", None) or str(e)
    merge_job_payload(db, job_id, {"progress": {"stage": "failed"}, "error": err})
    set_job_status(db, job_id, JobStatus.failed, error=err)


@celery_app.task(name="pipeline.process_study_kit")
def process_study_kit(job_id: int, study_kit_id: int) -> dict:
    db: Session = SessionLocal()
    try:
        set_job_status(db, job_id, JobStatus.running)
        merge_job_payload(db, job_id, {"study_kit_id": study_kit_id, "progress": {"stage": "start"}})

        kit = run_pipeline(lifecycle.run_study_kit, db, study_kit_id)

        merge_job_payload(
            db,
            job_id,
            {
                "progress": {"stage": "done"},
                "flashcards": len(kit.flashcards),
                "quiz_questions": len(kit.quiz_questions),
            },
        )
        set_job_status(db, job_id, JobStatus.done)
        return {"ok": True, "job_id": job_id, "study_kit_id": study_kit_id}
    except Exception as e:
        logger.exception(f"job {job_id} (study kit {study_kit_id}) failed")
        _fail(db, job_id, e)
        raise
    finally:
        db.close()


@celery_app.task(name="pipeline.generate_exam")
def generate_exam(
    job_id: int,
    exam_id: int,
    content: str | None = None,
    document_ids: list[int] | None = None,
    count: int = 10,
    types: list[str] | None = None,
    model: str | None = "auto",
) -> dict:
    db: Session = SessionLocal()
    try:
        set_job_status(db, job_id, JobStatus.running)
        merge_job_payload(db, job_id, {"exam_id": exam_id, "progress": {"stage": "start"}})

        exam = run_pipeline(
            lifecycle.run_exam_generation,
            db,
            exam_id,
            content=content,
            document_ids=document_ids,
            count=count,
            types=types,
            model=model,
        )

        merge_job_payload(db, job_id, {"progress": {"stage": "done"}, "questions": len(exam.questions)})
        set_job_status(db, job_id, JobStatus.done)
        return {"ok": True, "job_id": job_id, "exam_id": exam_id}
    except Exception as e:
        logger.exception(f"job {job_id} (exam {exam_id}) failed")
        _fail(db, job_id, e)
        raise
    finally:
        db.close()


@celery_app.task(name="pipeline.solve_assignment")
def solve_assignment(job_id: int, assignment_id: int, model: str | None = "auto") -> dict:
    db: Session = SessionLocal()
    try:
        set_job_status(db, job_id, JobStatus.running)
        merge_job_payload(db, job_id, {"assignment_id": assignment_id, "progress": {"stage": "start"}})

        run_pipeline(lifecycle.run_assignment_solution, db, assignment_id, model=model)

        merge_job_payload(db, job_id, {"progress": {"stage": "done"}})
        set_job_status(db, job_id, JobStatus.done)
        return {"ok": True, "job_id": job_id, "assignment_id": assignment_id}
    except Exception as e:
        logger.exception(f"job {job_id} (assignment {assignment_id}) failed")
        _fail(db, job_id, e)
        raise
    finally:
        db.close()
