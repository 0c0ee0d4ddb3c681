from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

MULTIPLE_CHOICE = "multiple-choice"
MULTIPLE_SELECT = "multiple-select"
TRUE_FALSE = "true-false"

QUESTION_TYPES = frozenset({MULTIPLE_CHOICE, MULTIPLE_SELECT, TRUE_FALSE})


@dataclass(frozen=True, slots=True)
class Question:
    """A gradable question.

    Single-answer types (multiple-choice, true-false) use ``correct_answer``;
    multiple-select uses ``correct_answers``.  Treated as immutable once an
    assessment referencing it has been submitted.
    """

    id: str
    type: str  # multiple-choice|multiple-select|true-false
    text: str
    options: tuple[str, ...] = ()
    correct_answer: str | None = None
    correct_answers: tuple[str, ...] = field(default_factory=tuple)
    explanation: str | None = None
    category: str = "general"

    @property
    def is_multi_select(self) -> bool:
        return self.type == MULTIPLE_SELECT

    @staticmethod
    def new(
        *,
        type: str,
        text: str,
        options: tuple[str, ...] = (),
        correct_answer: str | None = None,
        correct_answers: tuple[str, ...] = (),
        explanation: str | None = None,
        category: str = "general",
    ) -> Question:
        return Question(
            id=uuid4().hex,
            type=type,
            text=text,
            options=options,
            correct_answer=correct_answer,
            correct_answers=correct_answers,
            explanation=explanation,
            category=category,
        )
