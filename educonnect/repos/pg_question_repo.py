"""PostgreSQL implementation of QuestionRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from educonnect.db.tables import QuestionRow
from educonnect.models.question import Question


class PgQuestionRepo:
    """Satisfies the QuestionRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_many(self, question_ids: tuple[str, ...]) -> list[Question]:
        if not question_ids:
            return []
        stmt = select(QuestionRow).where(QuestionRow.id.in_(question_ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        by_id = {row.id: _row_to_question(row) for row in rows}
        return [by_id[q] for q in question_ids if q in by_id]

    async def add_many(self, questions: list[Question]) -> None:
        self._session.add_all(
            QuestionRow(
                id=q.id,
                type=q.type,
                text=q.text,
                options=list(q.options),
                correct_answer=q.correct_answer,
                correct_answers=list(q.correct_answers),
                explanation=q.explanation,
                category=q.category,
            )
            for q in questions
        )
        await self._session.flush()


def _row_to_question(row: QuestionRow) -> Question:
    return Question(
        id=row.id,
        type=row.type,
        text=row.text,
        options=tuple(row.options or ()),
        correct_answer=row.correct_answer,
        correct_answers=tuple(row.correct_answers or ()),
        explanation=row.explanation,
        category=row.category,
    )
