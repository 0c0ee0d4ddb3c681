"""add progress events

Revision ID: 8c4e2a917d05
Revises: 3b1f9c2d7e41
Create Date: 2026-10-19 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8c4e2a917d05"
down_revision: str | Sequence[str] | None = "3b1f9c2d7e41"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "progress_events",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column("occurred_at", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=True),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.UniqueConstraint(
            "user_id",
            "course_id",
            "idempotency_key",
            name="uq_progress_events_idempotency",
        ),
    )
    op.create_index(
        "ix_progress_events_user_course",
        "progress_events",
        ["user_id", "course_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_progress_events_user_course", table_name="progress_events")
    op.drop_table("progress_events")
