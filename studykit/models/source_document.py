from __future__ import annotations

from datetime import datetime

from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from studykit.db.base import Base
from studykit.models.status import DocumentStatus, status_column


class SourceDocument(Base):
    __tablename__ = "source_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    assignment_id: Mapped[int | None] = mapped_column(
        ForeignKey("assignments.id", ondelete="SET NULL"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(512), nullable=False)
    # fetchable reference (URL); null for virtual text-only documents
    location_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False, default="application/pdf")
    byte_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    status: Mapped[DocumentStatus] = mapped_column(
        status_column(DocumentStatus), nullable=False, default=DocumentStatus.uploaded
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    extracted_content: Mapped[Optional["ExtractedContent"]] = relationship(  # noqa: F821
        "ExtractedContent", back_populates="document", uselist=False
    )
    assignment: Mapped[Optional["Assignment"]] = relationship(  # noqa: F821
        "Assignment", back_populates="attachments"
    )
