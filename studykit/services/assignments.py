from sqlalchemy.orm import Session

from studykit.core.errors import ValidationError
from studykit.models.assignment import Assignment
from studykit.models.source_document import SourceDocument
from studykit.models.status import AssignmentStatus
from studykit.services.documents import get_owned


def create_assignment(
    db: Session,
    owner_id: str,
    title: str,
    *,
    description: str | None = None,
    document_ids: list[int] | None = None,
) -> Assignment:
    """Attachment order is upload order (document id), whatever the order of `document_ids`."""
    if not (title or "").strip():
        raise ValidationError("Title is required")

    docs = [get_owned(db, SourceDocument, doc_id, owner_id) for doc_id in document_ids or []]

    assignment = Assignment(
        owner_id=owner_id,
        title=title.strip(),
        description=(description or "").strip() or None,
        status=AssignmentStatus.processing,
    )
    db.add(assignment)
    db.flush()

    for doc in docs:
        doc.assignment_id = assignment.id
    db.commit()
    db.refresh(assignment)
    return assignment
