from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from studykit.core.errors import ValidationError
from studykit.core.logger import get_logger
from studykit.models.summary import Summary
from studykit.services.generation import generate_summary
from studykit.services.llm.policy import ModelSelectionPolicy

logger = get_logger(__name__)

MIN_SOURCE_CHARS = 50


async def create_summary(
    db: Session,
    policy: ModelSelectionPolicy,
    owner_id: str,
    content: str,
    *,
    title: str | None = None,
    length: str = "medium",
    model: str | None = "auto",
) -> Summary:
    source = (content or "").strip()
    if len(source) < MIN_SOURCE_CHARS:
        raise ValidationError(f"Content must be at least {MIN_SOURCE_CHARS} characters")

    result = await generate_summary(policy, source, length=length, model=model)

    summary = Summary(
        owner_id=owner_id,
        title=(title or "").strip() or result.title,
        subject=result.subject,
        length=length,
        source_text=source,
        summary_text=result.summary_text,
    )
    return await run_in_threadpool(save_summary, db, summary)


def save_summary(db: Session, summary: Summary) -> Summary:
    db.add(summary)
    db.commit()
    db.refresh(summary)
    logger.info(f"saved summary {summary.id} ({summary.length}) for {summary.owner_id}")
    return summary


def list_summaries(db: Session, owner_id: str, limit: int = 20, offset: int = 0) -> list[Summary]:
    return (
        db.query(Summary)
        .filter(Summary.owner_id == owner_id)
        .order_by(Summary.created_at.desc(), Summary.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
