"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

projects and documents mirror the project store this service reads;
comparison_stages holds user-defined comparison intervals.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- projects ---
    op.create_table(
        "projects",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("project_code", sa.String(64), nullable=False),
        sa.Column("project_name", sa.String(256), nullable=False),
        sa.Column("revenue_model", sa.String(64), nullable=True),
        sa.Column("installation_type", sa.String(64), nullable=True),
        sa.Column("intake_year", sa.Integer(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("initial_survey_date", sa.Date(), nullable=True),
        sa.Column("contract_signed_at", sa.Date(), nullable=True),
        sa.Column("structural_cert_date", sa.Date(), nullable=True),
        sa.Column("electrical_cert_date", sa.Date(), nullable=True),
        sa.Column("construction_start_date", sa.Date(), nullable=True),
        sa.Column("actual_meter_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_project_code", "projects", ["project_code"])

    # --- documents ---
    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("project_id", sa.String(36), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("doc_type", sa.String(128), nullable=True),
        sa.Column("doc_type_code", sa.String(64), nullable=True),
        sa.Column("submitted_at", sa.Date(), nullable=True),
        sa.Column("issued_at", sa.Date(), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_documents_project_id", "documents", ["project_id"])
    op.create_index("ix_documents_doc_type_code", "documents", ["doc_type_code"])

    # --- comparison_stages ---
    op.create_table(
        "comparison_stages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("label", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("from_step", sa.Integer(), nullable=False),
        sa.Column("to_step", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_comparison_stages_code"),
    )
    op.create_index("ix_comparison_stages_id", "comparison_stages", ["id"])


def downgrade() -> None:
    op.drop_index("ix_comparison_stages_id", table_name="comparison_stages")
    op.drop_table("comparison_stages")
    op.drop_index("ix_documents_doc_type_code", table_name="documents")
    op.drop_index("ix_documents_project_id", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_projects_project_code", table_name="projects")
    op.drop_table("projects")
