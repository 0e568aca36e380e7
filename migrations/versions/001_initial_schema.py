"""Assessments table

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""

import typing as t

from alembic import op
from sqlalchemy.schema import Column
from sqlalchemy.types import DateTime, JSON, String

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "assessments",
        Column("assessment_id", String(22), primary_key=True),
        Column("user_id", String(22), nullable=False),
        Column("type", String(32), nullable=False),
        Column("status", String(32), nullable=False),
        Column("create_time", DateTime(timezone=True), nullable=False),
        Column("update_time", DateTime(timezone=True), nullable=False),
        Column("disc_results", JSON, nullable=True),
        Column("soft_skills_results", JSON, nullable=True),
        Column("sjt_results", JSON, nullable=True),
        Column("progress_data", JSON, nullable=True),
        Column("completed_at", DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_assessments_user_id", "assessments", ["user_id"])
    op.create_index("ix_assessments_user_status_update", "assessments", ["user_id", "status", "update_time"])


def downgrade() -> None:
    op.drop_index("ix_assessments_user_status_update", table_name="assessments")
    op.drop_index("ix_assessments_user_id", table_name="assessments")
    op.drop_table("assessments")
