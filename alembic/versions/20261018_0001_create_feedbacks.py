"""create feedbacks table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "feedbacks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("program", sa.String(length=120), nullable=False),
        sa.Column("application_type", sa.String(length=16), nullable=False),
        sa.Column("country", sa.String(length=120), nullable=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("steps", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_feedbacks")),
    )
    op.create_index("ix_feedbacks_program", "feedbacks", ["program"], unique=False)
    op.create_index("ix_feedbacks_country", "feedbacks", ["country"], unique=False)
    op.create_index("ix_feedbacks_user_id", "feedbacks", ["user_id"], unique=False)
    op.create_index("ix_feedbacks_is_active", "feedbacks", ["is_active"], unique=False)
    op.create_index(
        "ix_feedbacks_active_created_at",
        "feedbacks",
        ["is_active", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_feedbacks_active_created_at", table_name="feedbacks")
    op.drop_index("ix_feedbacks_is_active", table_name="feedbacks")
    op.drop_index("ix_feedbacks_user_id", table_name="feedbacks")
    op.drop_index("ix_feedbacks_country", table_name="feedbacks")
    op.drop_index("ix_feedbacks_program", table_name="feedbacks")
    op.drop_table("feedbacks")
