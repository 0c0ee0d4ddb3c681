"""Course, enrollment, and progress endpoints.

Enrollment sequence:
  Client -> POST /api/courses/{courseId}/enroll
  -> course must exist
  -> learner record gains the course id, progress log gets "enrolled"
  -> 201 Enrolled (409 if already enrolled)

GET /api/courses/{courseId}/progress is read-through cached per user;
any new progress event for that user and course deletes the entry.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field, field_validator

from educonnect.api.dependencies import get_repos, require_any_role, require_user
from educonnect.api.schemas import ApiModel
from educonnect.core.config import SETTINGS
from educonnect.models.course import COURSE_LEVELS, Course
from educonnect.models.principal import STAFF_ROLES, Principal
from educonnect.models.progress import CourseProgress
from educonnect.repos.registry import Repos
from educonnect.services import course_service, progress_service
from educonnect.services.cache import cache_service, progress_key
from educonnect.services.errors import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    NotEnrolledError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])

_require_staff = require_any_role(STAFF_ROLES)


class CourseIn(ApiModel):
    title: str = Field(min_length=1)
    description: str = ""
    category: str = "General"
    level: str = "Beginner"
    tags: list[str] = []

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        if v not in COURSE_LEVELS:
            raise ValueError(f"level must be one of {sorted(COURSE_LEVELS)}")
        return v


class CourseOut(ApiModel):
    id: str
    title: str
    description: str
    category: str
    level: str
    tags: list[str]
    instructor_id: str | None
    created_at: int

    @classmethod
    def from_course(cls, c: Course) -> CourseOut:
        return cls(
            id=c.id,
            title=c.title,
            description=c.description,
            category=c.category,
            level=c.level,
            tags=list(c.tags),
            instructor_id=c.instructor_id,
            created_at=c.created_at,
        )


class EnrollmentOut(ApiModel):
    user_id: str
    course_id: str
    status: str
    enrolled_at: int


class ProgressOut(ApiModel):
    course_id: str
    status: str
    started_at: int | None
    completed_lessons: list[str]
    completed_lessons_count: int
    submitted_assessments: list[str]
    passed_assessments: list[str]
    time_spent: int
    last_activity_at: int | None
    completed_at: int | None

    @classmethod
    def from_progress(cls, p: CourseProgress) -> ProgressOut:
        return cls(
            course_id=p.course_id,
            status=p.status,
            started_at=p.started_at,
            completed_lessons=list(p.completed_lessons),
            completed_lessons_count=len(p.completed_lessons),
            submitted_assessments=list(p.submitted_assessments),
            passed_assessments=list(p.passed_assessments),
            time_spent=p.time_spent,
            last_activity_at=p.last_activity_at,
            completed_at=p.completed_at,
        )


def _course_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")


def _not_enrolled() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN, detail="Not enrolled in this course"
    )


@router.get("", response_model=list[CourseOut])
async def list_courses(
    repos: Annotated[Repos, Depends(get_repos)],
) -> list[CourseOut]:
    return [CourseOut.from_course(c) for c in await course_service.list_courses(repos)]


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseIn,
    principal: Annotated[Principal, Depends(_require_staff)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> CourseOut:
    course = await course_service.create_course(
        repos,
        instructor_id=principal.user_id,
        title=body.title,
        description=body.description,
        category=body.category,
        level=body.level,
        tags=tuple(body.tags),
    )
    return CourseOut.from_course(course)


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(
    course_id: str,
    repos: Annotated[Repos, Depends(get_repos)],
) -> CourseOut:
    try:
        course = await course_service.get_course(repos, course_id)
    except CourseNotFoundError:
        raise _course_not_found() from None
    return CourseOut.from_course(course)


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> EnrollmentOut:
    try:
        enrollment = await course_service.enroll(repos, course_id, principal.user_id)
    except CourseNotFoundError:
        raise _course_not_found() from None
    except AlreadyEnrolledError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Already enrolled"
        ) from None
    return EnrollmentOut(
        user_id=enrollment.user_id,
        course_id=enrollment.course_id,
        status=enrollment.status,
        enrolled_at=enrollment.enrolled_at,
    )


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@router.get("/{course_id}/progress", response_model=ProgressOut)
async def get_progress(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> ProgressOut:
    key = progress_key(principal.user_id, course_id)

    cached = await cache_service.get(key)
    if cached is not None:
        logger.debug("Progress cache hit key=%s", key)
        return ProgressOut.model_validate_json(cached)

    try:
        progress = await progress_service.get_progress(
            repos, course_id, principal.user_id
        )
    except CourseNotFoundError:
        raise _course_not_found() from None
    except NotEnrolledError:
        raise _not_enrolled() from None

    out = ProgressOut.from_progress(progress)
    await cache_service.set(
        key, out.model_dump_json(by_alias=True), SETTINGS.progress_cache_ttl
    )
    return out


@router.post("/{course_id}/lessons/{lesson_id}/complete", response_model=ProgressOut)
async def complete_lesson(
    course_id: str,
    lesson_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> ProgressOut:
    try:
        progress = await progress_service.complete_lesson(
            repos, course_id, lesson_id, principal.user_id
        )
    except CourseNotFoundError:
        raise _course_not_found() from None
    except NotEnrolledError:
        raise _not_enrolled() from None
    return ProgressOut.from_progress(progress)
