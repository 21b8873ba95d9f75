from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from studykit.db.base import Base
from studykit.models.status import JobStatus, status_column


class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    job_type: Mapped[str] = mapped_column(String(64), nullable=False)  # process_study_kit | generate_exam | solve_assignment
    status: Mapped[JobStatus] = mapped_column(status_column(JobStatus), nullable=False, default=JobStatus.queued)
    payload_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
