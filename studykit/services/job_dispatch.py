from __future__ import annotations

from typing import Any, Dict

from studykit.worker import tasks as worker_tasks


# API-level job_type -> Celery task object
JOB_TYPE_TO_TASK = {
    "process_study_kit": worker_tasks.process_study_kit,
    "generate_exam": worker_tasks.generate_exam,
    "solve_assignment": worker_tasks.solve_assignment,
}


def dispatch_job(job_type: str, payload: Dict[str, Any] | None = None):
    """
    Dispatch through the task object (.apply_async) so ENV=test eager mode works.
    Returns the celery result object (EagerResult or AsyncResult).
    """
    payload = payload or {}

    task = JOB_TYPE_TO_TASK.get(job_type)
    if not task:
        raise ValueError(f"Unknown job_type: {job_type}")

    return task.apply_async(kwargs=payload)
