from sqlalchemy.orm import Session

from studykit.models.source_document import SourceDocument
from studykit.models.status import StudyKitStatus
from studykit.models.study_kit import StudyKit
from studykit.services.documents import get_owned
from studykit.services.lifecycle import study_kit_title


def create_study_kit(db: Session, owner_id: str, document_id: int, model: str | None = "auto") -> StudyKit:
    doc = get_owned(db, SourceDocument, document_id, owner_id)
    kit = StudyKit(
        owner_id=owner_id,
        source_document_id=doc.id,
        title=study_kit_title(doc.name),
        model=model or "auto",
        status=StudyKitStatus.processing,
    )
    db.add(kit)
    db.commit()
    db.refresh(kit)
    return kit
