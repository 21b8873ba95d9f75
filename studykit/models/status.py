"""
Closed status sets for every orchestrated entity, plus the transition tables.

All status writes go through `transition()`; a move that is not listed in the
entity's table raises InvalidTransitionError instead of silently overwriting.
Self-transitions on in-flight statuses are allowed: a duplicate run against the
same entity re-enters the in-flight state and the last terminal write wins.
"""
from __future__ import annotations

import enum
from typing import Any

from sqlalchemy import Enum as SAEnum

from studykit.core.errors import InvalidTransitionError


class DocumentStatus(str, enum.Enum):
    uploaded = "uploaded"
    processing = "processing"
    ready = "ready"
    error = "error"


class StudyKitStatus(str, enum.Enum):
    processing = "processing"
    ready = "ready"
    error = "error"


class ExamStatus(str, enum.Enum):
    draft = "draft"
    generating = "generating"
    ready = "ready"
    completed = "completed"
    error = "error"


class AssignmentStatus(str, enum.Enum):
    processing = "processing"
    completed = "completed"
    error = "error"


class JobStatus(str, enum.Enum):
    queued = "queued"
    running = "running"
    done = "done"
    failed = "failed"


D, K, E, A, J = DocumentStatus, StudyKitStatus, ExamStatus, AssignmentStatus, JobStatus

TRANSITIONS: dict[type[enum.Enum], dict[Any, frozenset]] = {
    DocumentStatus: {
        D.uploaded: frozenset({D.processing, D.ready}),
        D.processing: frozenset({D.processing, D.ready, D.error}),
        D.ready: frozenset({D.processing}),
        D.error: frozenset({D.processing}),
    },
    StudyKitStatus: {
        K.processing: frozenset({K.processing, K.ready, K.error}),
        K.ready: frozenset({K.processing}),
        K.error: frozenset({K.processing}),
    },
    ExamStatus: {
        E.draft: frozenset({E.generating}),
        E.generating: frozenset({E.generating, E.ready, E.error}),
        E.ready: frozenset({E.generating, E.completed}),
        E.completed: frozenset({E.generating, E.completed}),
        E.error: frozenset({E.generating}),
    },
    AssignmentStatus: {
        A.processing: frozenset({A.processing, A.completed, A.error}),
        A.completed: frozenset({A.processing}),
        A.error: frozenset({A.processing}),
    },
    JobStatus: {
        J.queued: frozenset({J.running, J.failed}),
        J.running: frozenset({J.running, J.done, J.failed}),
        J.done: frozenset(),
        J.failed: frozenset(),
    },
}

# The status each entity enters at step 1 of a run, and its terminal success value.
IN_FLIGHT = {
    DocumentStatus: D.processing,
    StudyKitStatus: K.processing,
    ExamStatus: E.generating,
    AssignmentStatus: A.processing,
}
TERMINAL_SUCCESS = {
    DocumentStatus: D.ready,
    StudyKitStatus: K.ready,
    ExamStatus: E.ready,
    AssignmentStatus: A.completed,
}
ERROR = {
    DocumentStatus: D.error,
    StudyKitStatus: K.error,
    ExamStatus: E.error,
    AssignmentStatus: A.error,
}


def can_transition(current: enum.Enum, target: enum.Enum) -> bool:
    table = TRANSITIONS.get(type(current))
    if table is None or type(target) is not type(current):
        return False
    return target in table[current]


def transition(entity: Any, target: enum.Enum) -> None:
    """Move `entity.status` to `target`, or raise InvalidTransitionError."""
    current = entity.status
    if not can_transition(current, target):
        name = type(entity).__name__
        cur = getattr(current, "value", current)
        raise InvalidTransitionError(f"{name} cannot move from {cur} to {target.value}")
    entity.status = target


def status_column(enum_cls: type[enum.Enum]) -> SAEnum:
    """Stores the enum value (not its name) in a plain VARCHAR column."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda e: [m.value for m in e],
        validate_strings=True,
    )
