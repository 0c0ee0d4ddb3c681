"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in educonnect/models/.
Repos convert between rows and dataclasses.

The unique constraints on submissions and certificates are what make
one-submission-per-user and idempotent certificate issuance hold under
concurrent requests; the repos translate violations into domain results.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from educonnect.db.engine import Base

_ID = String(64)
_USER_ID = String(255)


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[str] = mapped_column(
        String(32), nullable=False, default="Beginner"
    )  # Beginner|Intermediate|Advanced
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=[])
    instructor_id: Mapped[str | None] = mapped_column(_USER_ID, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class QuestionRow(Base):
    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # multiple-choice|multiple-select|true-false
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=[]
    )
    correct_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    correct_answers: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=[]
    )
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(
        String(255), nullable=False, default="general"
    )


class AssessmentRow(Base):
    __tablename__ = "assessments"

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    course_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="quiz"
    )  # quiz|exam|assignment
    # Ordered references; questions are immutable once submitted against
    question_ids: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=[]
    )
    time_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    due_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    category: Mapped[str] = mapped_column(
        String(255), nullable=False, default="General"
    )
    created_by: Mapped[str | None] = mapped_column(_USER_ID, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SubmissionRow(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint(
            "assessment_id", "user_id", name="uq_submissions_assessment_user"
        ),
    )

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    assessment_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("assessments.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(_USER_ID, nullable=False)
    # [{question_id, is_correct, selected_answer, selected_answers}, ...]
    answers: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=[])
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class AssessmentStartRow(Base):
    __tablename__ = "assessment_starts"

    assessment_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("assessments.id"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(_USER_ID, primary_key=True)
    started_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class CertificateRow(Base):
    __tablename__ = "certificates"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "assessment_id",
            "course_id",
            name="uq_certificates_user_assessment_course",
        ),
    )

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(_USER_ID, nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=False
    )
    assessment_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("assessments.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    credential_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    grade: Mapped[str] = mapped_column(String(2), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    skills: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=[])
    issuer: Mapped[str] = mapped_column(
        String(255), nullable=False, default="EduConnect"
    )
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="issued"
    )  # issued|revoked


class EnrollmentRow(Base):
    __tablename__ = "enrollments"

    user_id: Mapped[str] = mapped_column(_USER_ID, primary_key=True)
    course_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("courses.id"), primary_key=True
    )
    enrolled_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="in_progress"
    )


class LearnerCertificateRow(Base):
    __tablename__ = "learner_certificates"

    user_id: Mapped[str] = mapped_column(_USER_ID, primary_key=True)
    certificate_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("certificates.id"), primary_key=True
    )


class ProgressEventRow(Base):
    __tablename__ = "progress_events"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "course_id",
            "idempotency_key",
            name="uq_progress_events_idempotency",
        ),
        Index("ix_progress_events_user_course", "user_id", "course_id"),
    )

    id: Mapped[str] = mapped_column(_ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(_USER_ID, nullable=False)
    course_id: Mapped[str] = mapped_column(
        _ID, ForeignKey("courses.id"), nullable=False
    )
    occurred_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[str] = mapped_column(
        String(64), nullable=False
    )  # enrolled|lesson_completed|assessment_submitted
    entity_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(_ID, nullable=True)
    payload_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
