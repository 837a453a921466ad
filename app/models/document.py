"""
Document — one filing, permit or certificate attached to a project.

Only current (`is_current`) and non-deleted rows take part in timeline
comparison. `doc_type_code` is the stable identifier (e.g. "TPC_REVIEW");
`doc_type` is the human label and is used as a fallback matching key.
"""
import uuid
from datetime import datetime, date

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id"), nullable=False, index=True
    )
    doc_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    doc_type_code: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    submitted_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    issued_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
