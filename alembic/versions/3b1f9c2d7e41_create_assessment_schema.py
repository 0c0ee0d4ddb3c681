"""create assessment schema

Revision ID: 3b1f9c2d7e41
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f9c2d7e41"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_EMPTY_ARRAY = sa.text("'{}'")


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column(
            "level", sa.String(length=32), nullable=False, server_default="Beginner"
        ),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default=_EMPTY_ARRAY,
        ),
        sa.Column("instructor_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False, server_default="0"),
    )

    op.create_table(
        "questions",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column(
            "options",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default=_EMPTY_ARRAY,
        ),
        sa.Column("correct_answer", sa.Text(), nullable=True),
        sa.Column(
            "correct_answers",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default=_EMPTY_ARRAY,
        ),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column(
            "category", sa.String(length=255), nullable=False, server_default="general"
        ),
    )

    op.create_table(
        "assessments",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="quiz"),
        sa.Column(
            "question_ids",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default=_EMPTY_ARRAY,
        ),
        sa.Column("time_limit", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("due_date", sa.String(length=64), nullable=True),
        sa.Column("passing_score", sa.Integer(), nullable=False, server_default="70"),
        sa.Column(
            "category", sa.String(length=255), nullable=False, server_default="General"
        ),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False, server_default="0"),
    )
    op.create_index("ix_assessments_course_id", "assessments", ["course_id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "assessment_id",
            sa.String(length=64),
            sa.ForeignKey("assessments.id"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column(
            "answers",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("time_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.BigInteger(), nullable=False),
        sa.UniqueConstraint(
            "assessment_id", "user_id", name="uq_submissions_assessment_user"
        ),
    )

    op.create_table(
        "assessment_starts",
        sa.Column(
            "assessment_id",
            sa.String(length=64),
            sa.ForeignKey("assessments.id"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.String(length=255), primary_key=True),
        sa.Column("started_at", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "certificates",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column(
            "assessment_id",
            sa.String(length=64),
            sa.ForeignKey("assessments.id"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("credential_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("grade", sa.String(length=2), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column(
            "skills",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default=_EMPTY_ARRAY,
        ),
        sa.Column(
            "issuer",
            sa.String(length=255),
            nullable=False,
            server_default="EduConnect",
        ),
        sa.Column("issued_at", sa.BigInteger(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=True),
        sa.Column(
            "status", sa.String(length=32), nullable=False, server_default="issued"
        ),
        sa.UniqueConstraint(
            "user_id",
            "assessment_id",
            "course_id",
            name="uq_certificates_user_assessment_course",
        ),
    )
    op.create_index("ix_certificates_user_id", "certificates", ["user_id"])

    op.create_table(
        "enrollments",
        sa.Column("user_id", sa.String(length=255), primary_key=True),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id"),
            primary_key=True,
        ),
        sa.Column("enrolled_at", sa.BigInteger(), nullable=False),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            server_default="in_progress",
        ),
    )

    op.create_table(
        "learner_certificates",
        sa.Column("user_id", sa.String(length=255), primary_key=True),
        sa.Column(
            "certificate_id",
            sa.String(length=64),
            sa.ForeignKey("certificates.id"),
            primary_key=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("learner_certificates")
    op.drop_table("enrollments")
    op.drop_index("ix_certificates_user_id", table_name="certificates")
    op.drop_table("certificates")
    op.drop_table("assessment_starts")
    op.drop_table("submissions")
    op.drop_index("ix_assessments_course_id", table_name="assessments")
    op.drop_table("assessments")
    op.drop_table("questions")
    op.drop_table("courses")
