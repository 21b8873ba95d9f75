from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from studykit.db.base import Base


class ExtractedContent(Base):
    __tablename__ = "extracted_contents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # at most one row per document
    document_id: Mapped[int] = mapped_column(
        ForeignKey("source_documents.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    document: Mapped["SourceDocument"] = relationship(  # noqa: F821
        "SourceDocument", back_populates="extracted_content"
    )

    @property
    def extraction_metadata(self) -> dict[str, Any]:
        try:
            data = json.loads(self.metadata_json or "{}")
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
