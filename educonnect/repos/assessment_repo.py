from __future__ import annotations

from typing import Protocol

from educonnect.models.assessment import Assessment, AssessmentStart, Submission


class DuplicateSubmissionError(Exception):
    """A submission for this (assessment, user) pair already exists."""


class AssessmentRepo(Protocol):
    async def get(self, assessment_id: str) -> Assessment | None: ...
    async def add(self, assessment: Assessment) -> None: ...
    async def search(
        self,
        *,
        category: str | None = None,
        text: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Assessment], int]: ...
    async def list_by_courses(self, course_ids: tuple[str, ...]) -> list[Assessment]: ...
    async def add_submission(self, submission: Submission) -> None: ...
    async def get_submission(
        self, assessment_id: str, user_id: str
    ) -> Submission | None: ...
    async def add_start(self, start: AssessmentStart) -> AssessmentStart: ...
    async def get_start(
        self, assessment_id: str, user_id: str
    ) -> AssessmentStart | None: ...


class InMemoryAssessmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Assessment] = {}
        self._submissions: dict[tuple[str, str], Submission] = {}
        self._starts: dict[tuple[str, str], AssessmentStart] = {}

    async def get(self, assessment_id: str) -> Assessment | None:
        return self._by_id.get(assessment_id)

    async def add(self, assessment: Assessment) -> None:
        if assessment.id in self._by_id:
            raise ValueError("assessment already exists")
        self._by_id[assessment.id] = assessment

    async def search(
        self,
        *,
        category: str | None = None,
        text: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Assessment], int]:
        needle = text.lower() if text else None
        matches = [
            a
            for a in self._by_id.values()
            if (category is None or a.category == category)
            and (
                needle is None
                or needle in a.title.lower()
                or needle in a.description.lower()
            )
        ]
        # Newest first
        matches.sort(key=lambda a: a.created_at, reverse=True)
        return matches[offset : offset + limit], len(matches)

    async def list_by_courses(self, course_ids: tuple[str, ...]) -> list[Assessment]:
        wanted = set(course_ids)
        return [a for a in self._by_id.values() if a.course_id in wanted]

    async def add_submission(self, submission: Submission) -> None:
        # Check and insert with no await in between: atomic on the event loop
        key = (submission.assessment_id, submission.user_id)
        if key in self._submissions:
            raise DuplicateSubmissionError(key)
        self._submissions[key] = submission

    async def get_submission(
        self, assessment_id: str, user_id: str
    ) -> Submission | None:
        return self._submissions.get((assessment_id, user_id))

    async def add_start(self, start: AssessmentStart) -> AssessmentStart:
        # First start wins; later calls return the original record
        key = (start.assessment_id, start.user_id)
        return self._starts.setdefault(key, start)

    async def get_start(
        self, assessment_id: str, user_id: str
    ) -> AssessmentStart | None:
        return self._starts.get((assessment_id, user_id))
