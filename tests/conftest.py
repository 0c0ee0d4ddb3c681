from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from educonnect.main import app
from educonnect.models.assessment import Assessment
from educonnect.models.course import Course
from educonnect.models.question import (
    MULTIPLE_CHOICE,
    MULTIPLE_SELECT,
    TRUE_FALSE,
    Question,
)
from educonnect.repos import registry
from educonnect.repos.registry import Repos
from educonnect.services import token_service
from educonnect.services.cache import InMemoryCacheService, cache_service


@pytest.fixture(autouse=True)
def repos(monkeypatch: pytest.MonkeyPatch) -> Repos:
    """Fresh in-memory repositories for every test."""
    fresh = Repos.in_memory()
    monkeypatch.setattr(registry, "IN_MEMORY_REPOS", fresh)
    return fresh


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if isinstance(cache_service, InMemoryCacheService):
        cache_service.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "student-0001",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    """Token with the default role (student)."""
    return mint_token()


@pytest.fixture
def tutor_token() -> str:
    return mint_token(username="tutor-0001", roles=["tutor"])


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

COURSE_ID = "course-00000000000000000000abcd"


def run(coro):
    """Drive a service coroutine from a synchronous test."""
    return asyncio.run(coro)


def sample_questions() -> list[Question]:
    """Five questions: three single-answer, two multiple-select."""
    return [
        Question(
            id="q1",
            type=MULTIPLE_CHOICE,
            text="2 + 2 = ?",
            options=("3", "4", "5"),
            correct_answer="4",
            category="arithmetic",
        ),
        Question(
            id="q2",
            type=TRUE_FALSE,
            text="The earth is flat.",
            options=("true", "false"),
            correct_answer="false",
            category="science",
        ),
        Question(
            id="q3",
            type=MULTIPLE_SELECT,
            text="Pick the primes.",
            options=("2", "3", "4"),
            correct_answers=("2", "3"),
            category="arithmetic",
        ),
        Question(
            id="q4",
            type=MULTIPLE_CHOICE,
            text="Capital of France?",
            options=("Paris", "Rome"),
            correct_answer="Paris",
            category="geography",
        ),
        Question(
            id="q5",
            type=MULTIPLE_SELECT,
            text="Pick the vowels.",
            options=("a", "b", "e"),
            correct_answers=("a", "e"),
            category="language",
        ),
    ]


# All five correct
ALL_CORRECT = [
    {"questionId": "q1", "selectedAnswer": "4"},
    {"questionId": "q2", "selectedAnswer": "false"},
    {"questionId": "q3", "selectedAnswers": ["3", "2"]},
    {"questionId": "q4", "selectedAnswer": "Paris"},
    {"questionId": "q5", "selectedAnswers": ["a", "e"]},
]

# Three of five correct (q2 and q5 wrong): 60%
THREE_OF_FIVE = [
    {"questionId": "q1", "selectedAnswer": "4"},
    {"questionId": "q2", "selectedAnswer": "true"},
    {"questionId": "q3", "selectedAnswers": ["2", "3"]},
    {"questionId": "q4", "selectedAnswer": "Paris"},
    {"questionId": "q5", "selectedAnswers": ["a"]},
]


def seed_assessment(
    repos: Repos,
    *,
    passing_score: int = 70,
    questions: list[Question] | None = None,
    course_id: str = COURSE_ID,
    assessment_id: str = "assessment-0001",
) -> Assessment:
    """Course + questions + assessment in the given in-memory repos."""
    qs = sample_questions() if questions is None else questions

    async def _seed() -> Assessment:
        if await repos.courses.get(course_id) is None:
            await repos.courses.add(
                Course(
                    id=course_id,
                    title="Python Basics",
                    description="Intro course",
                    category="Programming",
                    tags=("python", "basics"),
                )
            )
        await repos.questions.add_many(qs)
        assessment = Assessment(
            id=assessment_id,
            title="Python Quiz",
            description="Checks the basics",
            course_id=course_id,
            question_ids=tuple(q.id for q in qs),
            passing_score=passing_score,
        )
        await repos.assessments.add(assessment)
        return assessment

    return run(_seed())
