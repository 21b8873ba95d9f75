from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from studykit.db.base import Base


class User(Base):
    __tablename__ = "users"

    # caller id, resolved upstream by the auth layer
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # JSON list of enabled model aliases; null/empty means the whole catalogue
    enabled_models_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
