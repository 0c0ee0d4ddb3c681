"""Courses and enrollment.

Enrollment sequence:
  Client -> POST /api/courses/{courseId}/enroll
  -> course must exist
  -> learner record gains the course id (one enrollment per user/course)
  -> progress log starts with an enrolled event
  -> 201 Enrolled
"""

from __future__ import annotations

import logging

from educonnect.core.clock import utc_timestamp
from educonnect.models.course import Course
from educonnect.models.learner import Enrollment
from educonnect.repos.learner_repo import DuplicateEnrollmentError
from educonnect.repos.registry import Repos
from educonnect.services import progress_service
from educonnect.services.errors import AlreadyEnrolledError, CourseNotFoundError

logger = logging.getLogger(__name__)


async def create_course(
    repos: Repos,
    *,
    instructor_id: str,
    title: str,
    description: str,
    category: str,
    level: str = "Beginner",
    tags: tuple[str, ...] = (),
    now: int | None = None,
) -> Course:
    course = Course.new(
        title=title,
        description=description,
        category=category,
        level=level,
        tags=tags,
        instructor_id=instructor_id,
        created_at=now if now is not None else utc_timestamp(),
    )
    await repos.courses.add(course)
    logger.info("Course created id=%s by=%s", course.id, instructor_id)
    return course


async def list_courses(repos: Repos) -> list[Course]:
    return await repos.courses.list_all()


async def get_course(repos: Repos, course_id: str) -> Course:
    course = await repos.courses.get(course_id)
    if course is None:
        raise CourseNotFoundError(course_id)
    return course


async def enroll(
    repos: Repos, course_id: str, user_id: str, now: int | None = None
) -> Enrollment:
    await get_course(repos, course_id)
    try:
        enrollment = await repos.learners.enroll(
            Enrollment(
                user_id=user_id,
                course_id=course_id,
                enrolled_at=now if now is not None else utc_timestamp(),
            )
        )
    except DuplicateEnrollmentError:
        raise AlreadyEnrolledError(course_id) from None

    await progress_service.record_enrollment(repos, enrollment)

    logger.info(
        "Enrolled user=%s course=%s",
        user_id,
        course_id,
        extra={"user_id": user_id, "course_id": course_id},
    )
    return enrollment
