from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

ASSESSMENT_TYPES = frozenset({"quiz", "exam", "assignment"})

# Per-user status, derived from submissions and start records
NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class Assessment:
    id: str
    title: str
    description: str
    course_id: str
    type: str = "quiz"  # quiz|exam|assignment
    question_ids: tuple[str, ...] = ()
    time_limit: int = 60  # minutes
    due_date: str | None = None
    passing_score: int = 70  # 0-100
    category: str = "General"
    created_by: str | None = None
    created_at: int = 0

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        course_id: str,
        type: str = "quiz",
        question_ids: tuple[str, ...] = (),
        time_limit: int = 60,
        due_date: str | None = None,
        passing_score: int = 70,
        category: str = "General",
        created_by: str | None = None,
        created_at: int = 0,
    ) -> Assessment:
        return Assessment(
            id=uuid4().hex,
            title=title,
            description=description,
            course_id=course_id,
            type=type,
            question_ids=question_ids,
            time_limit=time_limit,
            due_date=due_date,
            passing_score=passing_score,
            category=category,
            created_by=created_by,
            created_at=created_at,
        )


@dataclass(frozen=True, slots=True)
class Answer:
    """One graded answer inside a submission.

    Exactly one of ``selected_answer`` / ``selected_answers`` is meaningful,
    depending on the question type.
    """

    question_id: str
    is_correct: bool
    selected_answer: str | None = None
    selected_answers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Submission:
    id: str
    assessment_id: str
    user_id: str
    answers: tuple[Answer, ...]
    score: int  # 0-100
    time_spent: int  # seconds
    submitted_at: int

    @staticmethod
    def new(
        *,
        assessment_id: str,
        user_id: str,
        answers: tuple[Answer, ...],
        score: int,
        time_spent: int,
        submitted_at: int,
    ) -> Submission:
        return Submission(
            id=uuid4().hex,
            assessment_id=assessment_id,
            user_id=user_id,
            answers=answers,
            score=score,
            time_spent=time_spent,
            submitted_at=submitted_at,
        )


@dataclass(frozen=True, slots=True)
class AssessmentStart:
    """Records that a user opened an assessment (drives ``in_progress``)."""

    assessment_id: str
    user_id: str
    started_at: int
