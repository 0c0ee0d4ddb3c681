"""Bundles the repositories a request works with.

In-memory repositories are process-wide singletons (the default when no
DATABASE_URL is configured); PostgreSQL repositories are built per request
around one AsyncSession so a submission and the certificate it triggers
share a transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from educonnect.repos.assessment_repo import AssessmentRepo, InMemoryAssessmentRepo
from educonnect.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from educonnect.repos.course_repo import CourseRepo, InMemoryCourseRepo
from educonnect.repos.learner_repo import InMemoryLearnerRepo, LearnerRepo
from educonnect.repos.pg_assessment_repo import PgAssessmentRepo
from educonnect.repos.pg_certificate_repo import PgCertificateRepo
from educonnect.repos.pg_course_repo import PgCourseRepo
from educonnect.repos.pg_learner_repo import PgLearnerRepo
from educonnect.repos.pg_progress_repo import PgProgressRepo
from educonnect.repos.pg_question_repo import PgQuestionRepo
from educonnect.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from educonnect.repos.question_repo import InMemoryQuestionRepo, QuestionRepo


@dataclass(frozen=True, slots=True)
class Repos:
    assessments: AssessmentRepo
    questions: QuestionRepo
    certificates: CertificateRepo
    courses: CourseRepo
    learners: LearnerRepo
    progress: ProgressRepo

    @staticmethod
    def in_memory() -> Repos:
        return Repos(
            assessments=InMemoryAssessmentRepo(),
            questions=InMemoryQuestionRepo(),
            certificates=InMemoryCertificateRepo(),
            courses=InMemoryCourseRepo(),
            learners=InMemoryLearnerRepo(),
            progress=InMemoryProgressRepo(),
        )

    @staticmethod
    def for_session(session: AsyncSession) -> Repos:
        return Repos(
            assessments=PgAssessmentRepo(session),
            questions=PgQuestionRepo(session),
            certificates=PgCertificateRepo(session),
            courses=PgCourseRepo(session),
            learners=PgLearnerRepo(session),
            progress=PgProgressRepo(session),
        )


# Process-wide store used when DATABASE_URL is not configured
IN_MEMORY_REPOS = Repos.in_memory()
