from __future__ import annotations

from typing import Protocol

from educonnect.models.question import Question


class QuestionRepo(Protocol):
    async def get_many(self, question_ids: tuple[str, ...]) -> list[Question]: ...
    async def add_many(self, questions: list[Question]) -> None: ...


class InMemoryQuestionRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Question] = {}

    async def get_many(self, question_ids: tuple[str, ...]) -> list[Question]:
        # Preserve assessment order; dangling references are skipped
        return [self._by_id[q] for q in question_ids if q in self._by_id]

    async def add_many(self, questions: list[Question]) -> None:
        for q in questions:
            self._by_id[q.id] = q
