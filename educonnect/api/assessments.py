"""Assessment endpoints.

Submission sequence:
  Client -> POST /api/assessments/{id}/submit
  -> grade + record submission (409 if the caller already submitted)
  -> issue certificate on a pass (failures logged, certificate: null)
  -> invalidate cached results
  -> 200 score breakdown

GET /api/assessments/{id}/results is read-through cached per user.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field, field_validator, model_validator

from educonnect.api.dependencies import get_repos, require_any_role, require_user
from educonnect.api.schemas import ApiModel
from educonnect.core.config import SETTINGS
from educonnect.models.assessment import ASSESSMENT_TYPES, IN_PROGRESS, Assessment
from educonnect.models.certificate import Certificate
from educonnect.models.principal import STAFF_ROLES, Principal
from educonnect.models.question import MULTIPLE_SELECT, QUESTION_TYPES, Question
from educonnect.repos.registry import Repos
from educonnect.services import assessment_service
from educonnect.services.cache import cache_service, results_key
from educonnect.services.errors import (
    AlreadySubmittedError,
    AssessmentNotFoundError,
    CourseNotFoundError,
    NotEnrolledError,
    SubmissionNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assessments", tags=["assessments"])

_require_staff = require_any_role(STAFF_ROLES)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class OptionIn(ApiModel):
    id: str | None = None
    text: str


class QuestionIn(ApiModel):
    text: str = Field(min_length=1)
    type: str
    options: list[str | OptionIn] = []
    correct_answer: str | None = None
    correct_answers: list[str] = []
    explanation: str | None = None
    category: str = "general"

    @field_validator("type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        if v not in QUESTION_TYPES:
            raise ValueError(f"type must be one of {sorted(QUESTION_TYPES)}")
        return v

    @model_validator(mode="after")
    def _has_key(self) -> QuestionIn:
        if self.type == MULTIPLE_SELECT:
            if not self.correct_answers:
                raise ValueError("multiple-select questions need correctAnswers")
        elif self.correct_answer is None:
            raise ValueError(f"{self.type} questions need correctAnswer")
        return self

    def to_question(self) -> Question:
        # Option objects are stored by their text
        options = tuple(o if isinstance(o, str) else o.text for o in self.options)
        return Question.new(
            type=self.type,
            text=self.text,
            options=options,
            correct_answer=self.correct_answer,
            correct_answers=tuple(self.correct_answers),
            explanation=self.explanation,
            category=self.category or "general",
        )


class AssessmentIn(ApiModel):
    title: str = Field(min_length=1)
    description: str = ""
    type: str = "quiz"
    questions: list[QuestionIn] = []
    time_limit: int = Field(60, gt=0)
    due_date: str | None = None
    passing_score: int = Field(70, ge=0, le=100)
    category: str = "General"
    course_id: str

    @field_validator("type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        if v not in ASSESSMENT_TYPES:
            raise ValueError(f"type must be one of {sorted(ASSESSMENT_TYPES)}")
        return v


class AssessmentOut(ApiModel):
    id: str
    title: str
    description: str
    course_id: str
    type: str
    question_count: int
    time_limit: int
    due_date: str | None
    passing_score: int
    category: str
    created_by: str | None
    created_at: int

    @classmethod
    def from_assessment(cls, a: Assessment) -> AssessmentOut:
        return cls(
            id=a.id,
            title=a.title,
            description=a.description,
            course_id=a.course_id,
            type=a.type,
            question_count=len(a.question_ids),
            time_limit=a.time_limit,
            due_date=a.due_date,
            passing_score=a.passing_score,
            category=a.category,
            created_by=a.created_by,
            created_at=a.created_at,
        )


class UserAssessmentOut(AssessmentOut):
    status: str
    score: int | None = None


class Pagination(ApiModel):
    total: int
    page: int
    limit: int
    pages: int


class AssessmentListOut(ApiModel):
    assessments: list[AssessmentOut]
    pagination: Pagination


class QuestionOut(ApiModel):
    """A question as shown to a learner: no correct answers."""

    id: str
    text: str
    type: str
    options: list[str]
    category: str

    @classmethod
    def from_question(cls, q: Question) -> QuestionOut:
        return cls(
            id=q.id,
            text=q.text,
            type=q.type,
            options=list(q.options),
            category=q.category,
        )


class AssessmentQuestionsOut(ApiModel):
    assessment_id: str
    title: str
    time_limit: int
    questions: list[QuestionOut]


class StartOut(ApiModel):
    assessment_id: str
    status: str
    started_at: int
    time_limit: int


class SubmitIn(ApiModel):
    # Any shape is accepted; entries the grader cannot read count as wrong
    answers: Any = None
    time_spent: int = Field(0, ge=0)

    @field_validator("time_spent", mode="before")
    @classmethod
    def _whole_seconds(cls, v: Any) -> Any:
        if isinstance(v, float) and v >= 0:
            return int(v + 0.5)
        return v


class CertificateSummaryOut(ApiModel):
    id: str
    title: str
    credential_id: str
    issue_date: int
    grade: str

    @classmethod
    def from_certificate(cls, c: Certificate) -> CertificateSummaryOut:
        return cls(
            id=c.id,
            title=c.title,
            credential_id=c.credential_id,
            issue_date=c.issued_at,
            grade=c.grade,
        )


class SubmitOut(ApiModel):
    message: str
    assessment_id: str
    score: int
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    percentage: int
    is_passed: bool
    passing_score: int
    time_spent: int
    submitted_at: int
    certificate: CertificateSummaryOut | None


class QuestionResultOut(ApiModel):
    id: str
    text: str
    type: str
    user_answer: str | list[str]
    correct_answer: str | None
    correct_answers: list[str]
    is_correct: bool
    category: str
    explanation: str | None


class PerformanceOut(ApiModel):
    strengths: list[str]
    weaknesses: list[str]
    recommendations: list[str]


class ResultsOut(ApiModel):
    assessment_id: str
    title: str
    course_title: str
    submitted_at: int
    time_spent: int
    score: int
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    percentage: int
    is_passed: bool
    passing_score: int
    questions: list[QuestionResultOut]
    performance: PerformanceOut


def _assessment_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found"
    )


# ---------------------------------------------------------------------------
# Authoring and listing
# ---------------------------------------------------------------------------


@router.post(
    "/create",
    response_model=AssessmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_assessment(
    body: AssessmentIn,
    principal: Annotated[Principal, Depends(_require_staff)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> AssessmentOut:
    try:
        assessment = await assessment_service.create_assessment(
            repos,
            created_by=principal.user_id,
            course_id=body.course_id,
            title=body.title,
            description=body.description,
            questions=[q.to_question() for q in body.questions],
            type=body.type,
            time_limit=body.time_limit,
            due_date=body.due_date,
            passing_score=body.passing_score,
            category=body.category,
        )
    except CourseNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
        ) from None
    return AssessmentOut.from_assessment(assessment)


@router.get("", response_model=AssessmentListOut)
async def list_assessments(
    _principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
    category: str | None = None,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> AssessmentListOut:
    assessments, total = await assessment_service.list_assessments(
        repos, category=category, search=search, page=page, limit=limit
    )
    return AssessmentListOut(
        assessments=[AssessmentOut.from_assessment(a) for a in assessments],
        pagination=Pagination(
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        ),
    )


@router.get("/user", response_model=list[UserAssessmentOut])
async def list_user_assessments(
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> list[UserAssessmentOut]:
    rows = await assessment_service.list_for_user(repos, principal.user_id)
    return [
        UserAssessmentOut(
            **AssessmentOut.from_assessment(r.assessment).model_dump(),
            status=r.status,
            score=r.score,
        )
        for r in rows
    ]


@router.get("/{assessment_id}", response_model=AssessmentOut)
async def get_assessment(
    assessment_id: str,
    _principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> AssessmentOut:
    try:
        assessment = await assessment_service.get_assessment(repos, assessment_id)
    except AssessmentNotFoundError:
        raise _assessment_not_found() from None
    return AssessmentOut.from_assessment(assessment)


# ---------------------------------------------------------------------------
# Taking an assessment
# ---------------------------------------------------------------------------


@router.post("/{assessment_id}/start", response_model=StartOut)
async def start_assessment(
    assessment_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> StartOut:
    try:
        assessment, start = await assessment_service.start_assessment(
            repos, assessment_id, principal.user_id
        )
    except AssessmentNotFoundError:
        raise _assessment_not_found() from None
    except AlreadySubmittedError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Assessment already completed",
        ) from None
    return StartOut(
        assessment_id=assessment.id,
        status=IN_PROGRESS,
        started_at=start.started_at,
        time_limit=assessment.time_limit,
    )


@router.get("/{assessment_id}/questions", response_model=AssessmentQuestionsOut)
async def get_questions(
    assessment_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> AssessmentQuestionsOut:
    try:
        assessment, questions = await assessment_service.get_questions_for_user(
            repos, assessment_id, principal.user_id
        )
    except AssessmentNotFoundError:
        raise _assessment_not_found() from None
    except NotEnrolledError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not enrolled in this course",
        ) from None
    return AssessmentQuestionsOut(
        assessment_id=assessment.id,
        title=assessment.title,
        time_limit=assessment.time_limit,
        questions=[QuestionOut.from_question(q) for q in questions],
    )


@router.post("/{assessment_id}/submit", response_model=SubmitOut)
async def submit_assessment(
    assessment_id: str,
    body: SubmitIn,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> SubmitOut:
    try:
        outcome = await assessment_service.submit_assessment(
            repos,
            assessment_id=assessment_id,
            user_id=principal.user_id,
            answers=body.answers,
            time_spent=body.time_spent,
        )
    except AssessmentNotFoundError:
        raise _assessment_not_found() from None
    except AlreadySubmittedError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already submitted this assessment",
        ) from None

    await cache_service.delete(results_key(principal.user_id, assessment_id))

    grading = outcome.grading
    return SubmitOut(
        message="Assessment submitted successfully",
        assessment_id=outcome.assessment.id,
        score=grading.score,
        total_questions=grading.total_questions,
        correct_answers=grading.correct_count,
        incorrect_answers=grading.incorrect_count,
        percentage=grading.score,
        is_passed=outcome.passed,
        passing_score=outcome.assessment.passing_score,
        time_spent=outcome.submission.time_spent,
        submitted_at=outcome.submission.submitted_at,
        certificate=(
            CertificateSummaryOut.from_certificate(outcome.certificate)
            if outcome.certificate is not None
            else None
        ),
    )


# ---------------------------------------------------------------------------
# GET /api/assessments/{id}/results  (read-through cached)
# ---------------------------------------------------------------------------


@router.get("/{assessment_id}/results", response_model=ResultsOut)
async def get_results(
    assessment_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> ResultsOut:
    key = results_key(principal.user_id, assessment_id)

    cached = await cache_service.get(key)
    if cached is not None:
        logger.debug("Results cache hit key=%s", key)
        return ResultsOut.model_validate_json(cached)

    try:
        results = await assessment_service.get_results(
            repos, assessment_id, principal.user_id
        )
    except AssessmentNotFoundError:
        raise _assessment_not_found() from None
    except SubmissionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found"
        ) from None

    submission = results.submission
    out = ResultsOut(
        assessment_id=results.assessment.id,
        title=results.assessment.title,
        course_title=results.course_title or "No course",
        submitted_at=submission.submitted_at,
        time_spent=submission.time_spent,
        score=submission.score,
        total_questions=results.total_questions,
        correct_answers=results.correct_count,
        incorrect_answers=results.incorrect_count,
        percentage=submission.score,
        is_passed=results.passed,
        passing_score=results.assessment.passing_score,
        questions=[
            QuestionResultOut(
                id=r.question.id,
                text=r.question.text,
                type=r.question.type,
                user_answer=(
                    r.user_answer
                    if isinstance(r.user_answer, str)
                    else list(r.user_answer)
                ),
                correct_answer=r.question.correct_answer,
                correct_answers=list(r.question.correct_answers),
                is_correct=r.is_correct,
                category=r.question.category,
                explanation=r.question.explanation,
            )
            for r in results.questions
        ],
        performance=PerformanceOut(
            strengths=list(results.performance.strengths),
            weaknesses=list(results.performance.weaknesses),
            recommendations=list(results.performance.recommendations),
        ),
    )

    await cache_service.set(
        key, out.model_dump_json(by_alias=True), SETTINGS.results_cache_ttl
    )
    return out
