"""Assessment authoring, attempts, submission, and results.

Submission sequence:
  load assessment + questions
  -> grade (educonnect.services.grading)
  -> record the submission (one per user; the repo enforces it atomically)
  -> append an assessment_submitted event to the course progress log
  -> on a passing score, issue the certificate as a side effect
  -> return the outcome for the response

Per-user status is derived, never stored on the assessment:
completed when the user has a submission, in_progress when the user has
started it, not_started otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from educonnect.core.clock import utc_timestamp
from educonnect.core.metrics import (
    ASSESSMENT_SUBMISSIONS,
    CERTIFICATE_ISSUE_FAILURES,
    DUPLICATE_SUBMISSIONS,
)
from educonnect.models.assessment import (
    COMPLETED,
    IN_PROGRESS,
    NOT_STARTED,
    Assessment,
    AssessmentStart,
    Submission,
)
from educonnect.models.certificate import Certificate
from educonnect.models.question import Question
from educonnect.repos.assessment_repo import DuplicateSubmissionError
from educonnect.repos.registry import Repos
from educonnect.services import certificate_service, progress_service
from educonnect.services.errors import (
    AlreadySubmittedError,
    AssessmentNotFoundError,
    CourseNotFoundError,
    NotEnrolledError,
    SubmissionNotFoundError,
)
from educonnect.services.grading import (
    GradingResult,
    Performance,
    grade_submission,
    is_passed,
    performance_breakdown,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    assessment: Assessment
    submission: Submission
    grading: GradingResult
    passed: bool
    certificate: Certificate | None


@dataclass(frozen=True, slots=True)
class UserAssessment:
    assessment: Assessment
    status: str
    score: int | None


@dataclass(frozen=True, slots=True)
class QuestionResult:
    question: Question
    user_answer: str | tuple[str, ...]
    is_correct: bool


@dataclass(frozen=True, slots=True)
class AssessmentResults:
    assessment: Assessment
    course_title: str | None
    submission: Submission
    questions: tuple[QuestionResult, ...]
    correct_count: int
    total_questions: int
    passed: bool
    performance: Performance

    @property
    def incorrect_count(self) -> int:
        return self.total_questions - self.correct_count


async def _require_assessment(repos: Repos, assessment_id: str) -> Assessment:
    assessment = await repos.assessments.get(assessment_id)
    if assessment is None:
        raise AssessmentNotFoundError(assessment_id)
    return assessment


# ---------------------------------------------------------------------------
# Authoring and listing
# ---------------------------------------------------------------------------


async def create_assessment(
    repos: Repos,
    *,
    created_by: str,
    course_id: str,
    title: str,
    description: str,
    questions: list[Question],
    type: str = "quiz",
    time_limit: int = 60,
    due_date: str | None = None,
    passing_score: int = 70,
    category: str = "General",
    now: int | None = None,
) -> Assessment:
    if await repos.courses.get(course_id) is None:
        raise CourseNotFoundError(course_id)

    await repos.questions.add_many(questions)
    assessment = Assessment.new(
        title=title,
        description=description,
        course_id=course_id,
        type=type,
        question_ids=tuple(q.id for q in questions),
        time_limit=time_limit,
        due_date=due_date,
        passing_score=passing_score,
        category=category,
        created_by=created_by,
        created_at=now if now is not None else utc_timestamp(),
    )
    await repos.assessments.add(assessment)
    logger.info(
        "Assessment created id=%s course=%s questions=%d by=%s",
        assessment.id,
        course_id,
        len(questions),
        created_by,
    )
    return assessment


async def list_assessments(
    repos: Repos,
    *,
    category: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Assessment], int]:
    return await repos.assessments.search(
        category=category,
        text=search,
        offset=(page - 1) * limit,
        limit=limit,
    )


async def get_assessment(repos: Repos, assessment_id: str) -> Assessment:
    return await _require_assessment(repos, assessment_id)


async def user_status(repos: Repos, assessment_id: str, user_id: str) -> str:
    if await repos.assessments.get_submission(assessment_id, user_id) is not None:
        return COMPLETED
    if await repos.assessments.get_start(assessment_id, user_id) is not None:
        return IN_PROGRESS
    return NOT_STARTED


async def list_for_user(repos: Repos, user_id: str) -> list[UserAssessment]:
    """Assessments of the user's enrolled courses with per-user status."""
    learner = await repos.learners.get(user_id)
    assessments = await repos.assessments.list_by_courses(learner.enrolled_course_ids)

    out: list[UserAssessment] = []
    for assessment in assessments:
        submission = await repos.assessments.get_submission(assessment.id, user_id)
        if submission is not None:
            out.append(UserAssessment(assessment, COMPLETED, submission.score))
            continue
        status = await user_status(repos, assessment.id, user_id)
        out.append(UserAssessment(assessment, status, None))
    return out


async def get_questions_for_user(
    repos: Repos, assessment_id: str, user_id: str
) -> tuple[Assessment, list[Question]]:
    assessment = await _require_assessment(repos, assessment_id)
    if not await repos.learners.is_enrolled(user_id, assessment.course_id):
        logger.warning(
            "Question access denied user=%s assessment=%s (not enrolled)",
            user_id,
            assessment_id,
        )
        raise NotEnrolledError(assessment.course_id)
    return assessment, await repos.questions.get_many(assessment.question_ids)


# ---------------------------------------------------------------------------
# Attempts and submission
# ---------------------------------------------------------------------------


async def start_assessment(
    repos: Repos, assessment_id: str, user_id: str, now: int | None = None
) -> tuple[Assessment, AssessmentStart]:
    assessment = await _require_assessment(repos, assessment_id)
    if await repos.assessments.get_submission(assessment_id, user_id) is not None:
        raise AlreadySubmittedError(assessment_id)

    start = await repos.assessments.add_start(
        AssessmentStart(
            assessment_id=assessment_id,
            user_id=user_id,
            started_at=now if now is not None else utc_timestamp(),
        )
    )
    return assessment, start


async def submit_assessment(
    repos: Repos,
    *,
    assessment_id: str,
    user_id: str,
    answers: Any,
    time_spent: int,
    now: int | None = None,
) -> SubmissionOutcome:
    """Grade and record a user's answers; issue a certificate on a pass.

    Raises:
        AssessmentNotFoundError: unknown assessment.
        AlreadySubmittedError: the user already submitted (checked up front
            and enforced again, atomically, when the submission is stored).
    """
    assessment = await _require_assessment(repos, assessment_id)

    # Cheap early exit; the repo's uniqueness guarantee is the real guard
    if await repos.assessments.get_submission(assessment_id, user_id) is not None:
        raise AlreadySubmittedError(assessment_id)

    questions = await repos.questions.get_many(assessment.question_ids)
    if len(questions) != len(assessment.question_ids):
        logger.warning(
            "Assessment %s references %d missing question(s)",
            assessment_id,
            len(assessment.question_ids) - len(questions),
        )

    grading = grade_submission(questions, answers)
    passed = is_passed(grading.score, assessment.passing_score)
    submitted_at = now if now is not None else utc_timestamp()

    submission = Submission.new(
        assessment_id=assessment_id,
        user_id=user_id,
        answers=grading.answers,
        score=grading.score,
        time_spent=time_spent,
        submitted_at=submitted_at,
    )
    try:
        await repos.assessments.add_submission(submission)
    except DuplicateSubmissionError:
        DUPLICATE_SUBMISSIONS.inc()
        logger.warning(
            "Concurrent duplicate submission rejected user=%s assessment=%s",
            user_id,
            assessment_id,
        )
        raise AlreadySubmittedError(assessment_id) from None

    await progress_service.record_submission(repos, assessment, submission, passed)

    ASSESSMENT_SUBMISSIONS.labels(outcome="passed" if passed else "failed").inc()
    logger.info(
        "Submission graded user=%s assessment=%s score=%d correct=%d/%d passed=%s",
        user_id,
        assessment_id,
        grading.score,
        grading.correct_count,
        grading.total_questions,
        passed,
        extra={"user_id": user_id, "assessment_id": assessment_id},
    )

    certificate = None
    if passed:
        certificate = await _issue_on_pass(
            repos, assessment, user_id, grading.score, submitted_at
        )

    return SubmissionOutcome(
        assessment=assessment,
        submission=submission,
        grading=grading,
        passed=passed,
        certificate=certificate,
    )


async def _issue_on_pass(
    repos: Repos, assessment: Assessment, user_id: str, score: int, now: int
) -> Certificate | None:
    """Certificate side effect of a passing submission.

    Failures are logged and reported as None; the submission stands.
    """
    try:
        course = await repos.courses.get(assessment.course_id)
        if course is None:
            logger.warning(
                "No certificate for assessment=%s: course %s not found",
                assessment.id,
                assessment.course_id,
            )
            return None
        certificate, _created = await certificate_service.issue_certificate(
            repos,
            user_id=user_id,
            assessment=assessment,
            course=course,
            score=score,
            now=now,
        )
        return certificate
    except Exception:
        CERTIFICATE_ISSUE_FAILURES.inc()
        logger.exception(
            "Certificate issuance failed user=%s assessment=%s",
            user_id,
            assessment.id,
        )
        return None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


async def get_results(
    repos: Repos, assessment_id: str, user_id: str
) -> AssessmentResults:
    assessment = await _require_assessment(repos, assessment_id)
    submission = await repos.assessments.get_submission(assessment_id, user_id)
    if submission is None:
        raise SubmissionNotFoundError(assessment_id)

    questions = await repos.questions.get_many(assessment.question_ids)
    answers = {a.question_id: a for a in submission.answers}

    results: list[QuestionResult] = []
    for q in questions:
        answer = answers.get(q.id)
        if answer is None:
            results.append(QuestionResult(q, (), False))
        elif q.is_multi_select:
            results.append(QuestionResult(q, answer.selected_answers, answer.is_correct))
        else:
            results.append(
                QuestionResult(q, answer.selected_answer or (), answer.is_correct)
            )

    course = await repos.courses.get(assessment.course_id)
    correct = sum(1 for r in results if r.is_correct)
    return AssessmentResults(
        assessment=assessment,
        course_title=course.title if course is not None else None,
        submission=submission,
        questions=tuple(results),
        correct_count=correct,
        total_questions=len(results),
        passed=is_passed(submission.score, assessment.passing_score),
        performance=performance_breakdown(
            (r.question.category, r.is_correct) for r in results
        ),
    )
