from __future__ import annotations

import datetime
import re

import pytest

from educonnect.models.certificate import REVOKED
from educonnect.models.principal import Principal
from educonnect.repos.registry import Repos
from educonnect.services import assessment_service, certificate_service
from educonnect.services.errors import (
    AssessmentNotFoundError,
    CertificateNotEarnedError,
    CertificateNotFoundError,
    CourseNotFoundError,
    PermissionDeniedError,
)
from tests.conftest import ALL_CORRECT, COURSE_ID, THREE_OF_FIVE, run, seed_assessment

CREDENTIAL_RE = re.compile(r"^EC-.{4}-.{4}-[0-9A-Z]{4}$")

USER = "learner-00009876"
# 2024-02-29T12:00:00Z
LEAP_DAY = int(datetime.datetime(2024, 2, 29, 12, tzinfo=datetime.UTC).timestamp())


def _issue(repos: Repos, score: int = 90, now: int | None = None):
    assessment = seed_assessment(repos)
    course = run(repos.courses.get(COURSE_ID))
    return run(
        certificate_service.issue_certificate(
            repos,
            user_id=USER,
            assessment=assessment,
            course=course,
            score=score,
            now=now,
        )
    )


def _submit(repos: Repos, answers, user_id: str = USER):
    return run(
        assessment_service.submit_assessment(
            repos,
            assessment_id="assessment-0001",
            user_id=user_id,
            answers=answers,
            time_spent=120,
        )
    )


# ---- credential id ----


def test_credential_id_format() -> None:
    cid = certificate_service.generate_credential_id(COURSE_ID, USER)
    assert CREDENTIAL_RE.match(cid)
    assert cid.startswith(f"EC-{COURSE_ID[-4:]}-{USER[-4:]}-")


# ---- issue ----


def test_issue_creates_certificate(repos: Repos) -> None:
    cert, created = _issue(repos, score=85)
    assert created
    assert cert.title == "Python Basics Certificate"
    assert cert.grade == "B"
    assert cert.score == 85
    assert cert.skills == ("python", "basics")
    assert cert.issuer == "EduConnect"
    assert cert.status == "issued"
    assert CREDENTIAL_RE.match(cert.credential_id)
    learner = run(repos.learners.get(USER))
    assert cert.id in learner.certificate_ids


def test_issue_is_idempotent(repos: Repos) -> None:
    first, created_first = _issue(repos, score=85)
    course = run(repos.courses.get(COURSE_ID))
    assessment = run(repos.assessments.get("assessment-0001"))
    second, created_second = run(
        certificate_service.issue_certificate(
            repos, user_id=USER, assessment=assessment, course=course, score=100
        )
    )
    assert created_first and not created_second
    assert second.credential_id == first.credential_id
    # No score update on re-issue
    assert second.score == 85
    assert len(run(repos.certificates.list_by_user(USER))) == 1


def test_expiry_is_three_calendar_years(repos: Repos) -> None:
    cert, _ = _issue(repos, now=LEAP_DAY)
    expires = datetime.datetime.fromtimestamp(cert.expires_at, datetime.UTC)
    assert (expires.year, expires.month, expires.day) == (2027, 2, 28)


# ---- generate ----


def test_generate_after_passing_submission_returns_auto_issued(repos: Repos) -> None:
    seed_assessment(repos)
    outcome = _submit(repos, ALL_CORRECT)
    cert, created = run(
        certificate_service.generate_certificate(
            repos, user_id=USER, assessment_id="assessment-0001", course_id=COURSE_ID
        )
    )
    assert not created
    assert cert.credential_id == outcome.certificate.credential_id


def test_generate_without_submission_is_refused(repos: Repos) -> None:
    seed_assessment(repos)
    with pytest.raises(CertificateNotEarnedError, match="haven't completed"):
        run(
            certificate_service.generate_certificate(
                repos,
                user_id=USER,
                assessment_id="assessment-0001",
                course_id=COURSE_ID,
            )
        )


def test_generate_after_failing_submission_is_refused(repos: Repos) -> None:
    seed_assessment(repos)
    _submit(repos, THREE_OF_FIVE)
    with pytest.raises(CertificateNotEarnedError, match="need to pass"):
        run(
            certificate_service.generate_certificate(
                repos,
                user_id=USER,
                assessment_id="assessment-0001",
                course_id=COURSE_ID,
            )
        )


def test_generate_unknown_ids(repos: Repos) -> None:
    seed_assessment(repos)
    with pytest.raises(AssessmentNotFoundError):
        run(
            certificate_service.generate_certificate(
                repos, user_id=USER, assessment_id="missing", course_id=COURSE_ID
            )
        )
    with pytest.raises(CourseNotFoundError):
        run(
            certificate_service.generate_certificate(
                repos,
                user_id=USER,
                assessment_id="assessment-0001",
                course_id="missing",
            )
        )


# ---- verify ----


def test_verify_valid(repos: Repos) -> None:
    cert, _ = _issue(repos)
    result = run(certificate_service.verify_certificate(repos, cert.credential_id))
    assert result.valid
    assert result.message == "Certificate is valid"
    assert result.course_title == "Python Basics"


def test_verify_expired(repos: Repos) -> None:
    cert, _ = _issue(repos, now=LEAP_DAY)
    result = run(
        certificate_service.verify_certificate(
            repos, cert.credential_id, now=cert.expires_at + 1
        )
    )
    assert not result.valid
    assert result.message == "Certificate has expired"


def test_verify_revoked(repos: Repos) -> None:
    cert, _ = _issue(repos)
    run(
        certificate_service.revoke_certificate(
            repos, cert.id, Principal(user_id="admin-1", roles=frozenset({"admin"}))
        )
    )
    result = run(certificate_service.verify_certificate(repos, cert.credential_id))
    assert not result.valid
    assert result.message == "Certificate has been revoked"
    assert result.certificate.status == REVOKED


def test_verify_unknown_credential(repos: Repos) -> None:
    with pytest.raises(CertificateNotFoundError):
        run(certificate_service.verify_certificate(repos, "EC-0000-0000-ZZZZ"))


# ---- read access ----


def test_get_certificate_owner_and_staff_only(repos: Repos) -> None:
    cert, _ = _issue(repos)
    owner = Principal(user_id=USER, roles=frozenset({"student"}))
    tutor = Principal(user_id="tutor-1", roles=frozenset({"tutor"}))
    other = Principal(user_id="someone-else", roles=frozenset({"student"}))

    assert run(certificate_service.get_certificate(repos, cert.id, owner)) == cert
    assert run(certificate_service.get_certificate(repos, cert.id, tutor)) == cert
    with pytest.raises(PermissionDeniedError):
        run(certificate_service.get_certificate(repos, cert.id, other))
