from sqlalchemy.orm import Session

from studykit.core.errors import ValidationError
from studykit.models.exam import Exam
from studykit.models.status import ExamStatus

DIFFICULTIES = ("easy", "medium", "hard")


def create_exam(
    db: Session,
    owner_id: str,
    title: str,
    *,
    subject: str | None = None,
    difficulty: str = "medium",
    duration: int | None = None,
) -> Exam:
    if not (title or "").strip():
        raise ValidationError("Title is required")
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"Invalid difficulty: {difficulty!r} (use one of {', '.join(DIFFICULTIES)})")

    exam = Exam(
        owner_id=owner_id,
        title=title.strip(),
        subject=(subject or "").strip() or None,
        difficulty=difficulty,
        duration=duration,
        status=ExamStatus.draft,
    )
    db.add(exam)
    db.commit()
    db.refresh(exam)
    return exam
