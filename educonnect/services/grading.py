"""Answer normalization, grading, and scoring.

Pure functions with no I/O, so the rules can be tested directly:

  raw client answers
    -> normalize_answers()   one NormalizedAnswer per question
    -> grade_answer()        verdict + storage shape per question
    -> compute_score()       integer percentage, 0-100
    -> is_passed() / letter_grade()

Clients send answers in several shapes: a list of
``{questionId, selectedAnswer | selectedAnswers}`` objects, or a mapping
keyed by question id whose values are strings, lists (possibly nested one
level), index-keyed objects (``{"0": "b", "1": "a"}``), or scalars.  The
normalizer accepts all of them; a malformed or missing answer is graded
as incorrect rather than rejected.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from educonnect.models.assessment import Answer
from educonnect.models.question import (
    MULTIPLE_CHOICE,
    MULTIPLE_SELECT,
    TRUE_FALSE,
    Question,
)

SINGLE = "single"
MULTI = "multi"

STRENGTH_THRESHOLD = 70
WEAKNESS_THRESHOLD = 50

_SINGLE_ANSWER_TYPES = frozenset({MULTIPLE_CHOICE, TRUE_FALSE})


@dataclass(frozen=True, slots=True)
class NormalizedAnswer:
    """Canonical per-question answer.

    ``kind == "single"``: ``value`` holds the selection, None when unanswered.
    ``kind == "multi"``: ``values`` holds the selections in submitted order.
    """

    kind: str
    value: str | None = None
    values: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        if self.kind == MULTI:
            return not self.values
        return self.value is None


@dataclass(frozen=True, slots=True)
class _RawEntry:
    selected_answer: Any = None
    selected_answers: Any = None


@dataclass(frozen=True, slots=True)
class GradingResult:
    answers: tuple[Answer, ...]
    correct_count: int
    total_questions: int
    score: int

    @property
    def incorrect_count(self) -> int:
        return self.total_questions - self.correct_count


@dataclass(frozen=True, slots=True)
class Performance:
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    recommendations: tuple[str, ...]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def stringify(value: Any) -> str:
    """Render a submitted value the way the web client serializes it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(v) for v in value)
    return str(value)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _flatten(raw: Any) -> list[str]:
    """Multi-select shapes to a flat list of strings (one level deep)."""
    if _is_blank(raw):
        return []
    if isinstance(raw, (list, tuple)):
        out: list[str] = []
        for item in raw:
            if isinstance(item, (list, tuple)):
                out.extend(stringify(v) for v in item)
            else:
                out.append(stringify(item))
        return out
    if isinstance(raw, Mapping):
        # {"0": "a", "1": "b"}: values in insertion order
        return [stringify(v) for v in raw.values()]
    return [stringify(raw)]


def _first(raw: Any) -> str | None:
    """Single-answer shapes to one string, None when nothing was selected."""
    if _is_blank(raw):
        return None
    if isinstance(raw, (list, tuple)):
        return stringify(raw[0]) if raw else None
    if isinstance(raw, Mapping):
        values = list(raw.values())
        return stringify(values[0]) if values else None
    return stringify(raw)


def _entry_from_value(value: Any) -> _RawEntry:
    if isinstance(value, Mapping) and (
        "selectedAnswer" in value or "selectedAnswers" in value
    ):
        return _RawEntry(
            selected_answer=value.get("selectedAnswer"),
            selected_answers=value.get("selectedAnswers"),
        )
    # Bare value keyed by question id: usable as either shape
    return _RawEntry(selected_answer=value, selected_answers=value)


def _index_entries(raw: Any) -> dict[str, _RawEntry]:
    entries: dict[str, _RawEntry] = {}
    if isinstance(raw, Mapping):
        for question_id, value in raw.items():
            entries[str(question_id)] = _entry_from_value(value)
    elif isinstance(raw, (list, tuple)):
        for item in raw:
            if not isinstance(item, Mapping) or item.get("questionId") is None:
                continue
            # First answer for a question wins
            entries.setdefault(
                str(item["questionId"]),
                _RawEntry(
                    selected_answer=item.get("selectedAnswer"),
                    selected_answers=item.get("selectedAnswers"),
                ),
            )
    return entries


def normalize_answer(question: Question, entry: _RawEntry | None) -> NormalizedAnswer:
    if question.is_multi_select:
        if entry is None:
            return NormalizedAnswer(kind=MULTI)
        if not _is_blank(entry.selected_answers):
            values = _flatten(entry.selected_answers)
        else:
            values = _flatten(entry.selected_answer)
        return NormalizedAnswer(kind=MULTI, values=tuple(values))

    if entry is None:
        return NormalizedAnswer(kind=SINGLE)
    if not _is_blank(entry.selected_answer):
        return NormalizedAnswer(kind=SINGLE, value=_first(entry.selected_answer))
    return NormalizedAnswer(kind=SINGLE, value=_first(entry.selected_answers))


def normalize_answers(
    raw: Any, questions: Iterable[Question]
) -> dict[str, NormalizedAnswer]:
    """Map every question id to its canonical answer.

    Unknown question ids in ``raw`` are ignored; questions without an
    answer normalize to "no selection".
    """
    entries = _index_entries(raw)
    return {q.id: normalize_answer(q, entries.get(q.id)) for q in questions}


# ---------------------------------------------------------------------------
# Grading
# ---------------------------------------------------------------------------


def is_correct(question: Question, answer: NormalizedAnswer) -> bool:
    if answer.is_empty:
        return False

    if question.type == MULTIPLE_SELECT:
        # Set equality: order and duplicates do not matter
        expected = {stringify(v) for v in question.correct_answers}
        return set(answer.values) == expected

    if question.type in _SINGLE_ANSWER_TYPES:
        return answer.value == stringify(question.correct_answer)

    return False


def grade_answer(question: Question, answer: NormalizedAnswer) -> Answer:
    """Grade one answer and reshape it for storage."""
    verdict = is_correct(question, answer)
    if answer.kind == MULTI:
        return Answer(
            question_id=question.id,
            is_correct=verdict,
            selected_answer=None,
            selected_answers=answer.values,
        )
    return Answer(
        question_id=question.id,
        is_correct=verdict,
        selected_answer=answer.value,
        selected_answers=(),
    )


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def compute_score(correct_count: int, total_questions: int) -> int:
    """Percentage of correct answers rounded half-up; 0 when there are no questions."""
    if total_questions <= 0:
        return 0
    # Integer half-up rounding of correct * 100 / total
    return (correct_count * 200 + total_questions) // (2 * total_questions)


def is_passed(score: int, passing_score: int) -> bool:
    return score >= passing_score


def letter_grade(score: int) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def grade_submission(questions: list[Question], raw_answers: Any) -> GradingResult:
    normalized = normalize_answers(raw_answers, questions)
    graded = tuple(grade_answer(q, normalized[q.id]) for q in questions)
    correct = sum(1 for a in graded if a.is_correct)
    total = len(questions)
    return GradingResult(
        answers=graded,
        correct_count=correct,
        total_questions=total,
        score=compute_score(correct, total),
    )


def performance_breakdown(results: Iterable[tuple[str, bool]]) -> Performance:
    """Strengths and weaknesses from (category, is_correct) pairs."""
    totals: dict[str, list[int]] = {}
    for category, correct in results:
        bucket = totals.setdefault(category or "general", [0, 0])
        bucket[0] += 1
        if correct:
            bucket[1] += 1

    strengths: list[str] = []
    weaknesses: list[str] = []
    for category, (total, correct) in totals.items():
        accuracy = correct / total * 100
        if accuracy >= STRENGTH_THRESHOLD:
            strengths.append(category)
        if accuracy < WEAKNESS_THRESHOLD:
            weaknesses.append(category)

    return Performance(
        strengths=tuple(strengths),
        weaknesses=tuple(weaknesses),
        recommendations=tuple(f"Review concepts related to {w}" for w in weaknesses),
    )
