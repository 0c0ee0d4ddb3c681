from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

COURSE_LEVELS = frozenset({"Beginner", "Intermediate", "Advanced"})


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    title: str
    description: str
    category: str
    level: str = "Beginner"  # Beginner|Intermediate|Advanced
    tags: tuple[str, ...] = ()  # copied onto certificates as skills
    instructor_id: str | None = None
    created_at: int = 0

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        category: str,
        level: str = "Beginner",
        tags: tuple[str, ...] = (),
        instructor_id: str | None = None,
        created_at: int = 0,
    ) -> Course:
        return Course(
            id=uuid4().hex,
            title=title,
            description=description,
            category=category,
            level=level,
            tags=tags,
            instructor_id=instructor_id,
            created_at=created_at,
        )
