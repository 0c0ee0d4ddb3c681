from __future__ import annotations

import re

from fastapi.testclient import TestClient

from educonnect.models.question import (
    MULTIPLE_CHOICE,
    MULTIPLE_SELECT,
    TRUE_FALSE,
    Question,
)
from educonnect.repos.registry import Repos
from tests.conftest import (
    ALL_CORRECT,
    COURSE_ID,
    THREE_OF_FIVE,
    auth,
    mint_token,
    seed_assessment,
)

_BASE = "/api/assessments"
_ID = "assessment-0001"

CREDENTIAL_RE = re.compile(r"^EC-.{4}-.{4}-[0-9A-Z]{4}$")


def _submit(client: TestClient, token: str, answers, time_spent: float = 240):
    return client.post(
        f"{_BASE}/{_ID}/submit",
        json={"answers": answers, "timeSpent": time_spent},
        headers=auth(token),
    )


# ---- submit ----


def test_submit_all_correct(client: TestClient, repos: Repos, token: str) -> None:
    seed_assessment(repos)
    resp = _submit(client, token, ALL_CORRECT)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Assessment submitted successfully"
    assert body["assessmentId"] == _ID
    assert body["score"] == 100
    assert body["percentage"] == 100
    assert body["totalQuestions"] == 5
    assert body["correctAnswers"] == 5
    assert body["incorrectAnswers"] == 0
    assert body["isPassed"] is True
    assert body["passingScore"] == 70
    assert body["timeSpent"] == 240
    assert body["certificate"]["grade"] == "A"
    assert body["certificate"]["credentialId"].startswith("EC-")


def test_submit_failing(client: TestClient, repos: Repos, token: str) -> None:
    seed_assessment(repos)
    resp = _submit(client, token, THREE_OF_FIVE)
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 60
    assert body["isPassed"] is False
    assert body["certificate"] is None


def test_submit_accepts_mapping_shape(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    answers = {
        "q1": "4",
        "q2": False,
        "q3": {"0": "2", "1": "3"},
        "q4": ["Paris"],
        "q5": [["a"], "e"],
    }
    resp = _submit(client, token, answers)
    assert resp.status_code == 200
    assert resp.json()["score"] == 100


def test_duplicate_submission_conflicts(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    assert _submit(client, token, THREE_OF_FIVE).status_code == 200
    resp = _submit(client, token, ALL_CORRECT)
    assert resp.status_code == 409
    assert resp.json() == {"message": "You have already submitted this assessment"}


def test_submit_unknown_assessment(client: TestClient, token: str) -> None:
    resp = _submit(client, token, ALL_CORRECT)
    assert resp.status_code == 404
    assert resp.json() == {"message": "Assessment not found"}


def test_submit_requires_token(client: TestClient, repos: Repos) -> None:
    seed_assessment(repos)
    resp = client.post(f"{_BASE}/{_ID}/submit", json={"answers": []})
    assert resp.status_code == 401


def test_submit_rejects_garbage_token(client: TestClient, repos: Repos) -> None:
    seed_assessment(repos)
    resp = client.post(
        f"{_BASE}/{_ID}/submit",
        json={"answers": []},
        headers=auth("not-a-jwt"),
    )
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid token"}


def test_submit_grades_unreadable_entries_as_wrong(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    answers = ALL_CORRECT[:4] + ["junk", 42, None, {"selectedAnswer": "a"}]
    resp = _submit(client, token, answers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 80
    assert body["correctAnswers"] == 4

    results = client.get(f"{_BASE}/{_ID}/results", headers=auth(token)).json()
    q5 = next(q for q in results["questions"] if q["id"] == "q5")
    assert q5["isCorrect"] is False
    assert q5["userAnswer"] == []


def test_submit_without_answers_scores_zero(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = _submit(client, token, None)
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 0
    assert body["isPassed"] is False


def test_submit_rounds_fractional_time_spent(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = _submit(client, token, ALL_CORRECT, time_spent=12.5)
    assert resp.status_code == 200
    assert resp.json()["timeSpent"] == 13


def test_validation_errors_use_message_body(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = _submit(client, token, ALL_CORRECT, time_spent=-5)
    assert resp.status_code == 422
    body = resp.json()
    assert list(body) == ["message"]
    assert body["message"].startswith("timeSpent: ")


def test_reordered_object_keyed_multi_select_is_correct(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(
        repos,
        questions=[
            Question(
                id="ms1",
                type=MULTIPLE_SELECT,
                text="Pick the first two letters.",
                options=("a", "b", "c"),
                correct_answers=("a", "b"),
            )
        ],
    )
    answers = [{"questionId": "ms1", "selectedAnswers": {"0": "b", "1": "a"}}]
    resp = _submit(client, token, answers)
    assert resp.status_code == 200
    assert resp.json()["score"] == 100

    results = client.get(f"{_BASE}/{_ID}/results", headers=auth(token)).json()
    assert results["questions"][0]["isCorrect"] is True
    assert results["questions"][0]["userAnswer"] == ["b", "a"]


def test_three_of_four_passes_with_grade_c(
    client: TestClient, repos: Repos, token: str
) -> None:
    questions = [
        Question(
            id="f1",
            type=TRUE_FALSE,
            text="Python is dynamically typed.",
            options=("true", "false"),
            correct_answer="true",
        ),
        Question(
            id="f2",
            type=MULTIPLE_CHOICE,
            text="len('abc')?",
            options=("2", "3"),
            correct_answer="3",
        ),
        Question(
            id="f3",
            type=MULTIPLE_SELECT,
            text="Pick the immutable types.",
            options=("tuple", "list", "str"),
            correct_answers=("tuple", "str"),
        ),
        Question(
            id="f4",
            type=MULTIPLE_CHOICE,
            text="Keyword for a generator?",
            options=("yield", "return"),
            correct_answer="yield",
        ),
    ]
    seed_assessment(repos, questions=questions, passing_score=70)
    answers = [
        {"questionId": "f1", "selectedAnswer": "true"},
        {"questionId": "f2", "selectedAnswer": "3"},
        {"questionId": "f3", "selectedAnswers": {"0": "str", "1": "tuple"}},
        {"questionId": "f4", "selectedAnswer": "return"},
    ]
    resp = _submit(client, token, answers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 75
    assert body["isPassed"] is True
    certificate = body["certificate"]
    assert certificate["grade"] == "C"
    assert CREDENTIAL_RE.match(certificate["credentialId"])

    resp = client.post(
        "/api/certificates/generate",
        json={"assessmentId": _ID, "courseId": COURSE_ID},
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Certificate already exists"
    assert resp.json()["certificate"]["credentialId"] == certificate["credentialId"]


# ---- results ----


def test_results_after_submission(client: TestClient, repos: Repos, token: str) -> None:
    seed_assessment(repos)
    _submit(client, token, THREE_OF_FIVE)

    resp = client.get(f"{_BASE}/{_ID}/results", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 60
    assert body["percentage"] == 60
    assert body["correctAnswers"] == 3
    assert body["incorrectAnswers"] == 2
    assert body["isPassed"] is False
    assert body["courseTitle"] == "Python Basics"
    assert body["performance"]["weaknesses"] == ["science", "language"]
    assert body["performance"]["recommendations"] == [
        "Review concepts related to science",
        "Review concepts related to language",
    ]
    q3 = next(q for q in body["questions"] if q["id"] == "q3")
    assert q3["userAnswer"] == ["2", "3"]
    assert q3["correctAnswers"] == ["2", "3"]
    assert q3["isCorrect"] is True


def test_results_without_submission(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = client.get(f"{_BASE}/{_ID}/results", headers=auth(token))
    assert resp.status_code == 404
    assert resp.json() == {"message": "Submission not found"}


def test_results_cache_is_invalidated_by_submit(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    assert client.get(f"{_BASE}/{_ID}/results", headers=auth(token)).status_code == 404
    _submit(client, token, ALL_CORRECT)

    first = client.get(f"{_BASE}/{_ID}/results", headers=auth(token))
    second = client.get(f"{_BASE}/{_ID}/results", headers=auth(token))
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert first.json()["score"] == 100


def test_results_are_per_user(client: TestClient, repos: Repos) -> None:
    seed_assessment(repos)
    alice = mint_token(username="alice-0001")
    bob = mint_token(username="bob-0002")
    _submit(client, alice, ALL_CORRECT)
    _submit(client, bob, THREE_OF_FIVE)

    assert client.get(f"{_BASE}/{_ID}/results", headers=auth(alice)).json()["score"] == 100
    assert client.get(f"{_BASE}/{_ID}/results", headers=auth(bob)).json()["score"] == 60


# ---- authoring ----


def _create_course(client: TestClient, tutor_token: str) -> str:
    resp = client.post(
        "/api/courses",
        json={"title": "Data 101", "category": "Data", "tags": ["sql"]},
        headers=auth(tutor_token),
    )
    assert resp.status_code == 201
    return resp.json()["id"]


def test_tutor_creates_assessment(client: TestClient, tutor_token: str) -> None:
    course_id = _create_course(client, tutor_token)
    resp = client.post(
        f"{_BASE}/create",
        json={
            "title": "SQL Quiz",
            "description": "Joins",
            "courseId": course_id,
            "passingScore": 50,
            "questions": [
                {
                    "text": "Pick one",
                    "type": "multiple-choice",
                    "options": [{"id": "a", "text": "INNER"}, {"id": "b", "text": "OUTER"}],
                    "correctAnswer": "INNER",
                },
                {
                    "text": "Pick all",
                    "type": "multiple-select",
                    "options": ["LEFT", "RIGHT", "UP"],
                    "correctAnswers": ["LEFT", "RIGHT"],
                },
            ],
        },
        headers=auth(tutor_token),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["questionCount"] == 2
    assert body["passingScore"] == 50
    assert body["timeLimit"] == 60
    assert body["category"] == "General"
    assert body["createdBy"] == "tutor-0001"


def test_student_cannot_create_assessment(client: TestClient, token: str) -> None:
    resp = client.post(
        f"{_BASE}/create",
        json={"title": "x", "courseId": COURSE_ID},
        headers=auth(token),
    )
    assert resp.status_code == 403


def test_create_for_unknown_course(client: TestClient, tutor_token: str) -> None:
    resp = client.post(
        f"{_BASE}/create",
        json={"title": "x", "courseId": "missing"},
        headers=auth(tutor_token),
    )
    assert resp.status_code == 404


def test_create_rejects_question_without_answer_key(
    client: TestClient, tutor_token: str
) -> None:
    resp = client.post(
        f"{_BASE}/create",
        json={
            "title": "x",
            "courseId": COURSE_ID,
            "questions": [{"text": "?", "type": "multiple-select"}],
        },
        headers=auth(tutor_token),
    )
    assert resp.status_code == 422


# ---- listing / status ----


def test_list_assessments_with_pagination(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = client.get(f"{_BASE}?search=quiz&page=1&limit=5", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert [a["id"] for a in body["assessments"]] == [_ID]
    assert body["pagination"] == {"total": 1, "page": 1, "limit": 5, "pages": 1}


def test_get_assessment_hides_answers(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = client.get(f"{_BASE}/{_ID}", headers=auth(token))
    assert resp.status_code == 200
    assert "correctAnswer" not in resp.text


def test_user_assessments_status_is_per_user(
    client: TestClient, repos: Repos
) -> None:
    seed_assessment(repos)
    alice = mint_token(username="alice-0001")
    bob = mint_token(username="bob-0002")
    for t in (alice, bob):
        assert client.post(
            f"/api/courses/{COURSE_ID}/enroll", headers=auth(t)
        ).status_code == 201

    client.post(f"{_BASE}/{_ID}/start", headers=auth(bob))
    _submit(client, alice, ALL_CORRECT)

    a_rows = client.get(f"{_BASE}/user", headers=auth(alice)).json()
    b_rows = client.get(f"{_BASE}/user", headers=auth(bob)).json()
    assert (a_rows[0]["status"], a_rows[0]["score"]) == ("completed", 100)
    assert (b_rows[0]["status"], b_rows[0]["score"]) == ("in_progress", None)


def test_start_after_submit_conflicts(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    _submit(client, token, ALL_CORRECT)
    resp = client.post(f"{_BASE}/{_ID}/start", headers=auth(token))
    assert resp.status_code == 409


def test_questions_require_enrollment(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = client.get(f"{_BASE}/{_ID}/questions", headers=auth(token))
    assert resp.status_code == 403

    client.post(f"/api/courses/{COURSE_ID}/enroll", headers=auth(token))
    resp = client.get(f"{_BASE}/{_ID}/questions", headers=auth(token))
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["questions"]) == 5
    assert all("correctAnswer" not in q for q in body["questions"])
