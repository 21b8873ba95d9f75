import pytest

from studykit.core.errors import InvalidTransitionError
from studykit.models.exam import Exam
from studykit.models.job import Job
from studykit.models.status import (
    AssignmentStatus,
    DocumentStatus,
    ExamStatus,
    JobStatus,
    StudyKitStatus,
    can_transition,
    transition,
)


def test_exam_happy_path():
    exam = Exam(owner_id="u", title="t", status=ExamStatus.draft)
    for target in (ExamStatus.generating, ExamStatus.ready, ExamStatus.completed):
        transition(exam, target)
    assert exam.status is ExamStatus.completed


def test_error_only_reachable_from_in_flight():
    assert can_transition(ExamStatus.generating, ExamStatus.error)
    assert not can_transition(ExamStatus.draft, ExamStatus.error)
    assert not can_transition(ExamStatus.ready, ExamStatus.error)
    assert can_transition(StudyKitStatus.processing, StudyKitStatus.error)
    assert not can_transition(StudyKitStatus.ready, StudyKitStatus.error)
    assert can_transition(AssignmentStatus.processing, AssignmentStatus.error)
    assert not can_transition(AssignmentStatus.completed, AssignmentStatus.error)


def test_retry_reenters_in_flight():
    assert can_transition(StudyKitStatus.error, StudyKitStatus.processing)
    assert can_transition(ExamStatus.error, ExamStatus.generating)
    assert can_transition(AssignmentStatus.completed, AssignmentStatus.processing)
    assert can_transition(DocumentStatus.error, DocumentStatus.processing)


def test_duplicate_run_reenters_in_flight():
    assert can_transition(ExamStatus.generating, ExamStatus.generating)
    assert can_transition(StudyKitStatus.processing, StudyKitStatus.processing)


def test_invalid_transition_raises_and_keeps_status():
    exam = Exam(owner_id="u", title="t", status=ExamStatus.draft)
    with pytest.raises(InvalidTransitionError):
        transition(exam, ExamStatus.completed)
    assert exam.status is ExamStatus.draft


def test_mixed_enum_types_rejected():
    assert not can_transition(ExamStatus.generating, StudyKitStatus.ready)


def test_finished_jobs_are_terminal():
    job = Job(job_type="x", status=JobStatus.done)
    with pytest.raises(InvalidTransitionError):
        transition(job, JobStatus.running)
