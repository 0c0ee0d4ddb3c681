from __future__ import annotations

from typing import Protocol

from educonnect.models.course import Course


class CourseRepo(Protocol):
    async def get(self, course_id: str) -> Course | None: ...
    async def add(self, course: Course) -> None: ...
    async def list_all(self) -> list[Course]: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Course] = {}

    async def get(self, course_id: str) -> Course | None:
        return self._by_id.get(course_id)

    async def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise ValueError("course already exists")
        self._by_id[course.id] = course

    async def list_all(self) -> list[Course]:
        return sorted(self._by_id.values(), key=lambda c: c.created_at, reverse=True)
