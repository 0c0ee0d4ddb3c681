from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

# Event types
ENROLLED = "enrolled"
LESSON_COMPLETED = "lesson_completed"
ASSESSMENT_SUBMITTED = "assessment_submitted"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Append-only event log: the source of truth for learner progress."""

    id: str
    user_id: str
    course_id: str
    occurred_at: int
    type: str  # enrolled|lesson_completed|assessment_submitted
    entity_type: str | None = None  # lesson|assessment
    entity_id: str | None = None
    payload_json: str | None = None
    # One event per key per user and course; replays return the first
    idempotency_key: str | None = None

    @staticmethod
    def new(
        *,
        user_id: str,
        course_id: str,
        occurred_at: int,
        type: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
        payload_json: str | None = None,
        idempotency_key: str | None = None,
    ) -> ProgressEvent:
        return ProgressEvent(
            id=uuid4().hex,
            user_id=user_id,
            course_id=course_id,
            occurred_at=occurred_at,
            type=type,
            entity_type=entity_type,
            entity_id=entity_id,
            payload_json=payload_json,
            idempotency_key=idempotency_key,
        )


@dataclass(frozen=True, slots=True)
class CourseProgress:
    """Read model folded from one user's events for one course."""

    user_id: str
    course_id: str
    status: str = "not_started"  # not_started|in_progress|completed
    started_at: int | None = None
    completed_lessons: tuple[str, ...] = ()
    submitted_assessments: tuple[str, ...] = ()
    passed_assessments: tuple[str, ...] = ()
    time_spent: int = 0
    last_activity_at: int | None = None
    completed_at: int | None = None
