from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from educonnect.models.learner import Enrollment, Learner


class DuplicateEnrollmentError(Exception):
    """The user is already enrolled in the course."""


class LearnerRepo(Protocol):
    async def get(self, user_id: str) -> Learner: ...
    async def enroll(self, enrollment: Enrollment) -> Enrollment: ...
    async def is_enrolled(self, user_id: str, course_id: str) -> bool: ...
    async def add_certificate(self, user_id: str, certificate_id: str) -> None: ...


class InMemoryLearnerRepo:
    def __init__(self) -> None:
        self._learners: dict[str, Learner] = {}
        self._enrollments: dict[tuple[str, str], Enrollment] = {}

    async def get(self, user_id: str) -> Learner:
        # Learners exist implicitly once authenticated
        return self._learners.get(user_id) or Learner(user_id=user_id)

    async def enroll(self, enrollment: Enrollment) -> Enrollment:
        key = (enrollment.user_id, enrollment.course_id)
        if key in self._enrollments:
            raise DuplicateEnrollmentError(key)
        self._enrollments[key] = enrollment

        learner = await self.get(enrollment.user_id)
        self._learners[learner.user_id] = replace(
            learner,
            enrolled_course_ids=learner.enrolled_course_ids + (enrollment.course_id,),
        )
        return enrollment

    async def is_enrolled(self, user_id: str, course_id: str) -> bool:
        return (user_id, course_id) in self._enrollments

    async def add_certificate(self, user_id: str, certificate_id: str) -> None:
        learner = await self.get(user_id)
        if certificate_id in learner.certificate_ids:
            return
        self._learners[user_id] = replace(
            learner, certificate_ids=learner.certificate_ids + (certificate_id,)
        )
