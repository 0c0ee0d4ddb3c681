from __future__ import annotations

import re

from fastapi.testclient import TestClient

from educonnect.repos.registry import Repos
from tests.conftest import (
    ALL_CORRECT,
    COURSE_ID,
    THREE_OF_FIVE,
    auth,
    mint_token,
    seed_assessment,
)

_BASE = "/api/certificates"
_ASSESSMENT_ID = "assessment-0001"
CREDENTIAL_RE = re.compile(r"^EC-.{4}-.{4}-[0-9A-Z]{4}$")


def _submit(client: TestClient, token: str, answers):
    return client.post(
        f"/api/assessments/{_ASSESSMENT_ID}/submit",
        json={"answers": answers, "timeSpent": 60},
        headers=auth(token),
    )


def _generate(client: TestClient, token: str, course_id: str = COURSE_ID):
    return client.post(
        f"{_BASE}/generate",
        json={"assessmentId": _ASSESSMENT_ID, "courseId": course_id},
        headers=auth(token),
    )


# ---- generate ----


def test_generate_returns_auto_issued_certificate(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    issued = _submit(client, token, ALL_CORRECT).json()["certificate"]

    resp = _generate(client, token)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Certificate already exists"
    assert body["certificate"]["credentialId"] == issued["credentialId"]


def test_generate_creates_when_missing(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    _submit(client, token, ALL_CORRECT)
    # Remove the auto-issued certificate to exercise the explicit path
    repos.certificates._by_id.clear()  # type: ignore[attr-defined]
    repos.certificates._by_key.clear()  # type: ignore[attr-defined]
    repos.certificates._by_credential.clear()  # type: ignore[attr-defined]

    resp = _generate(client, token)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Certificate generated successfully"
    cert = body["certificate"]
    assert CREDENTIAL_RE.match(cert["credentialId"])
    assert cert["title"] == "Python Basics Certificate"
    assert cert["skills"] == ["python", "basics"]
    assert cert["grade"] == "A"
    assert cert["status"] == "issued"


def test_generate_without_passing(client: TestClient, repos: Repos, token: str) -> None:
    seed_assessment(repos)
    _submit(client, token, THREE_OF_FIVE)
    resp = _generate(client, token)
    assert resp.status_code == 400
    assert resp.json() == {
        "message": "You need to pass the assessment to earn a certificate"
    }


def test_generate_without_submission(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    resp = _generate(client, token)
    assert resp.status_code == 400
    assert resp.json() == {"message": "You haven't completed this assessment yet"}


def test_generate_unknown_course(client: TestClient, repos: Repos, token: str) -> None:
    seed_assessment(repos)
    resp = _generate(client, token, course_id="missing")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Course not found"}


# ---- verify (public) ----


def test_verify_valid_without_token(
    client: TestClient, repos: Repos, token: str
) -> None:
    seed_assessment(repos)
    credential_id = _submit(client, token, ALL_CORRECT).json()["certificate"][
        "credentialId"
    ]

    resp = client.get(f"{_BASE}/verify/{credential_id}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is True
    assert body["message"] == "Certificate is valid"
    assert body["certificate"]["courseTitle"] == "Python Basics"
    assert body["certificate"]["credentialId"] == credential_id


def test_verify_unknown(client: TestClient) -> None:
    resp = client.get(f"{_BASE}/verify/EC-0000-0000-ZZZZ")
    assert resp.status_code == 404
    assert resp.json() == {"valid": False, "message": "Certificate not found"}


def test_verify_after_revocation(
    client: TestClient, repos: Repos, token: str, tutor_token: str
) -> None:
    seed_assessment(repos)
    cert = _submit(client, token, ALL_CORRECT).json()["certificate"]

    resp = client.post(f"{_BASE}/{cert['id']}/revoke", headers=auth(tutor_token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "revoked"

    body = client.get(f"{_BASE}/verify/{cert['credentialId']}").json()
    assert body["valid"] is False
    assert body["message"] == "Certificate has been revoked"


def test_student_cannot_revoke(client: TestClient, repos: Repos, token: str) -> None:
    seed_assessment(repos)
    cert = _submit(client, token, ALL_CORRECT).json()["certificate"]
    resp = client.post(f"{_BASE}/{cert['id']}/revoke", headers=auth(token))
    assert resp.status_code == 403


# ---- list / get ----


def test_list_own_certificates(client: TestClient, repos: Repos, token: str) -> None:
    seed_assessment(repos)
    _submit(client, token, ALL_CORRECT)

    resp = client.get(_BASE, headers=auth(token))
    assert resp.status_code == 200
    assert len(resp.json()) == 1

    other = mint_token(username="other-0003")
    assert client.get(_BASE, headers=auth(other)).json() == []


def test_get_certificate_access(
    client: TestClient, repos: Repos, token: str, tutor_token: str
) -> None:
    seed_assessment(repos)
    cert_id = _submit(client, token, ALL_CORRECT).json()["certificate"]["id"]

    assert client.get(f"{_BASE}/{cert_id}", headers=auth(token)).status_code == 200
    assert client.get(f"{_BASE}/{cert_id}", headers=auth(tutor_token)).status_code == 200

    other = mint_token(username="other-0003")
    resp = client.get(f"{_BASE}/{cert_id}", headers=auth(other))
    assert resp.status_code == 403


def test_get_unknown_certificate(client: TestClient, token: str) -> None:
    resp = client.get(f"{_BASE}/missing", headers=auth(token))
    assert resp.status_code == 404
