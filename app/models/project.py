import uuid
from datetime import datetime, date

from sqlalchemy import Boolean, Date, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class SolarProject(Base):
    """
    A solar installation project as kept by the project store.

    Read-only for this service. The six nullable date columns are the
    milestones recorded directly on the project; every other milestone
    is derived from the project's documents.
    """
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    project_name: Mapped[str] = mapped_column(String(256), nullable=False)
    revenue_model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    installation_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    intake_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    initial_survey_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    contract_signed_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    structural_cert_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    electrical_cert_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    construction_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_meter_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
