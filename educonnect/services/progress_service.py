"""Per-user course progress.

Progress is an append-only event log per (user, course); the summary a
learner sees is folded from those events on read.

  enroll                -> enrolled event
  POST lesson complete  -> lesson_completed event (once per lesson)
  submit assessment     -> assessment_submitted event (score, passed, time)
  GET progress          -> fold events into CourseProgress

Every append invalidates the cached summary for that user and course.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from educonnect.core.clock import utc_timestamp
from educonnect.models.assessment import Assessment, Submission
from educonnect.models.learner import Enrollment
from educonnect.models.progress import (
    ASSESSMENT_SUBMITTED,
    ENROLLED,
    LESSON_COMPLETED,
    CourseProgress,
    ProgressEvent,
)
from educonnect.repos.registry import Repos
from educonnect.services.cache import cache_service, progress_key
from educonnect.services.errors import CourseNotFoundError, NotEnrolledError

logger = logging.getLogger(__name__)


async def _append(repos: Repos, event: ProgressEvent) -> ProgressEvent:
    stored, created = await repos.progress.append(event)
    if created:
        await cache_service.delete(progress_key(event.user_id, event.course_id))
        logger.debug(
            "Progress event type=%s user=%s course=%s",
            event.type,
            event.user_id,
            event.course_id,
        )
    return stored


async def record_enrollment(repos: Repos, enrollment: Enrollment) -> None:
    await _append(
        repos,
        ProgressEvent.new(
            user_id=enrollment.user_id,
            course_id=enrollment.course_id,
            occurred_at=enrollment.enrolled_at,
            type=ENROLLED,
            idempotency_key=ENROLLED,
        ),
    )


async def record_submission(
    repos: Repos, assessment: Assessment, submission: Submission, passed: bool
) -> None:
    await _append(
        repos,
        ProgressEvent.new(
            user_id=submission.user_id,
            course_id=assessment.course_id,
            occurred_at=submission.submitted_at,
            type=ASSESSMENT_SUBMITTED,
            entity_type="assessment",
            entity_id=assessment.id,
            payload_json=json.dumps(
                {
                    "score": submission.score,
                    "passed": passed,
                    "timeSpent": submission.time_spent,
                }
            ),
            idempotency_key=f"assessment:{assessment.id}",
        ),
    )


async def _require_enrolled(repos: Repos, course_id: str, user_id: str) -> None:
    if await repos.courses.get(course_id) is None:
        raise CourseNotFoundError(course_id)
    if not await repos.learners.is_enrolled(user_id, course_id):
        raise NotEnrolledError(course_id)


async def complete_lesson(
    repos: Repos,
    course_id: str,
    lesson_id: str,
    user_id: str,
    now: int | None = None,
) -> CourseProgress:
    """Mark a lesson complete; repeating it changes nothing.

    Raises:
        CourseNotFoundError: unknown course.
        NotEnrolledError: the user is not enrolled in the course.
    """
    await _require_enrolled(repos, course_id, user_id)
    await _append(
        repos,
        ProgressEvent.new(
            user_id=user_id,
            course_id=course_id,
            occurred_at=now if now is not None else utc_timestamp(),
            type=LESSON_COMPLETED,
            entity_type="lesson",
            entity_id=lesson_id,
            idempotency_key=f"lesson:{lesson_id}",
        ),
    )
    events = await repos.progress.list_for(user_id, course_id)
    return summarize(user_id, course_id, events)


async def get_progress(repos: Repos, course_id: str, user_id: str) -> CourseProgress:
    await _require_enrolled(repos, course_id, user_id)
    events = await repos.progress.list_for(user_id, course_id)
    return summarize(user_id, course_id, events)


def summarize(
    user_id: str, course_id: str, events: Iterable[ProgressEvent]
) -> CourseProgress:
    started_at: int | None = None
    last_activity_at: int | None = None
    completed_at: int | None = None
    lessons: list[str] = []
    submitted: list[str] = []
    passed: list[str] = []
    time_spent = 0

    for e in sorted(events, key=lambda e: e.occurred_at):
        if last_activity_at is None or e.occurred_at > last_activity_at:
            last_activity_at = e.occurred_at

        if e.type == ENROLLED:
            if started_at is None:
                started_at = e.occurred_at
        elif e.type == LESSON_COMPLETED and e.entity_id is not None:
            if e.entity_id not in lessons:
                lessons.append(e.entity_id)
        elif e.type == ASSESSMENT_SUBMITTED and e.entity_id is not None:
            payload = json.loads(e.payload_json) if e.payload_json else {}
            if e.entity_id not in submitted:
                submitted.append(e.entity_id)
            time_spent += int(payload.get("timeSpent", 0))
            if payload.get("passed") and e.entity_id not in passed:
                passed.append(e.entity_id)
                if completed_at is None:
                    completed_at = e.occurred_at

    if passed:
        status = "completed"
    elif lessons or submitted:
        status = "in_progress"
    else:
        status = "not_started"

    return CourseProgress(
        user_id=user_id,
        course_id=course_id,
        status=status,
        started_at=started_at,
        completed_lessons=tuple(lessons),
        submitted_assessments=tuple(submitted),
        passed_assessments=tuple(passed),
        time_spent=time_spent,
        last_activity_at=last_activity_at,
        completed_at=completed_at,
    )
