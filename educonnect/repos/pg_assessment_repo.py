"""PostgreSQL implementation of AssessmentRepo."""

from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from educonnect.db.tables import AssessmentRow, AssessmentStartRow, SubmissionRow
from educonnect.models.assessment import (
    Answer,
    Assessment,
    AssessmentStart,
    Submission,
)
from educonnect.repos.assessment_repo import DuplicateSubmissionError


class PgAssessmentRepo:
    """Satisfies the AssessmentRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, assessment_id: str) -> Assessment | None:
        row = await self._session.get(AssessmentRow, assessment_id)
        if row is None:
            return None
        return _row_to_assessment(row)

    async def add(self, assessment: Assessment) -> None:
        self._session.add(
            AssessmentRow(
                id=assessment.id,
                title=assessment.title,
                description=assessment.description,
                course_id=assessment.course_id,
                type=assessment.type,
                question_ids=list(assessment.question_ids),
                time_limit=assessment.time_limit,
                due_date=assessment.due_date,
                passing_score=assessment.passing_score,
                category=assessment.category,
                created_by=assessment.created_by,
                created_at=assessment.created_at,
            )
        )
        await self._session.flush()

    async def search(
        self,
        *,
        category: str | None = None,
        text: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Assessment], int]:
        stmt = select(AssessmentRow)
        if category is not None:
            stmt = stmt.where(AssessmentRow.category == category)
        if text:
            pattern = f"%{text}%"
            stmt = stmt.where(
                or_(
                    AssessmentRow.title.ilike(pattern),
                    AssessmentRow.description.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._session.execute(count_stmt)).scalar_one()

        page = stmt.order_by(AssessmentRow.created_at.desc()).offset(offset).limit(limit)
        rows = (await self._session.execute(page)).scalars().all()
        return [_row_to_assessment(r) for r in rows], total

    async def list_by_courses(self, course_ids: tuple[str, ...]) -> list[Assessment]:
        if not course_ids:
            return []
        stmt = select(AssessmentRow).where(AssessmentRow.course_id.in_(course_ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_assessment(r) for r in rows]

    async def add_submission(self, submission: Submission) -> None:
        row = SubmissionRow(
            id=submission.id,
            assessment_id=submission.assessment_id,
            user_id=submission.user_id,
            answers=[_answer_to_json(a) for a in submission.answers],
            score=submission.score,
            time_spent=submission.time_spent,
            submitted_at=submission.submitted_at,
        )
        # Savepoint so a unique violation leaves the outer transaction usable
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError:
            raise DuplicateSubmissionError(
                (submission.assessment_id, submission.user_id)
            ) from None

    async def get_submission(
        self, assessment_id: str, user_id: str
    ) -> Submission | None:
        stmt = select(SubmissionRow).where(
            SubmissionRow.assessment_id == assessment_id,
            SubmissionRow.user_id == user_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_submission(row)

    async def add_start(self, start: AssessmentStart) -> AssessmentStart:
        stmt = (
            pg_insert(AssessmentStartRow)
            .values(
                assessment_id=start.assessment_id,
                user_id=start.user_id,
                started_at=start.started_at,
            )
            .on_conflict_do_nothing(index_elements=["assessment_id", "user_id"])
        )
        await self._session.execute(stmt)
        stored = await self.get_start(start.assessment_id, start.user_id)
        return stored or start

    async def get_start(
        self, assessment_id: str, user_id: str
    ) -> AssessmentStart | None:
        row = await self._session.get(AssessmentStartRow, (assessment_id, user_id))
        if row is None:
            return None
        return AssessmentStart(
            assessment_id=row.assessment_id,
            user_id=row.user_id,
            started_at=row.started_at,
        )


def _row_to_assessment(row: AssessmentRow) -> Assessment:
    return Assessment(
        id=row.id,
        title=row.title,
        description=row.description,
        course_id=row.course_id,
        type=row.type,
        question_ids=tuple(row.question_ids or ()),
        time_limit=row.time_limit,
        due_date=row.due_date,
        passing_score=row.passing_score,
        category=row.category,
        created_by=row.created_by,
        created_at=row.created_at,
    )


def _answer_to_json(answer: Answer) -> dict:
    return {
        "question_id": answer.question_id,
        "is_correct": answer.is_correct,
        "selected_answer": answer.selected_answer,
        "selected_answers": list(answer.selected_answers),
    }


def _row_to_submission(row: SubmissionRow) -> Submission:
    return Submission(
        id=row.id,
        assessment_id=row.assessment_id,
        user_id=row.user_id,
        answers=tuple(
            Answer(
                question_id=a["question_id"],
                is_correct=bool(a["is_correct"]),
                selected_answer=a.get("selected_answer"),
                selected_answers=tuple(a.get("selected_answers") or ()),
            )
            for a in row.answers or ()
        ),
        score=row.score,
        time_spent=row.time_spent,
        submitted_at=row.submitted_at,
    )
