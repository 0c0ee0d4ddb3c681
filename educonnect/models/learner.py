from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Enrollment:
    user_id: str
    course_id: str
    enrolled_at: int
    status: str = "in_progress"  # in_progress|completed


@dataclass(frozen=True, slots=True)
class Learner:
    """Per-user learning record: enrollments and earned certificates."""

    user_id: str
    enrolled_course_ids: tuple[str, ...] = ()
    certificate_ids: tuple[str, ...] = ()
