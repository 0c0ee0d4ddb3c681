"""Certificate issuance, lookup, verification, and revocation.

Issuance is a single idempotent operation keyed on
(user_id, assessment_id, course_id).  Both the submit path (automatic,
on a passing score) and the explicit generate endpoint go through
``issue_certificate``, which delegates the existence check and the insert
to one atomic repository call.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass

from educonnect.core.clock import add_years, utc_timestamp
from educonnect.core.config import SETTINGS
from educonnect.core.metrics import CERTIFICATES_ISSUED
from educonnect.models.assessment import Assessment
from educonnect.models.certificate import REVOKED, Certificate
from educonnect.models.course import Course
from educonnect.models.principal import Principal
from educonnect.repos.registry import Repos
from educonnect.services.errors import (
    AssessmentNotFoundError,
    CertificateNotEarnedError,
    CertificateNotFoundError,
    CourseNotFoundError,
    PermissionDeniedError,
)
from educonnect.services.grading import is_passed, letter_grade

logger = logging.getLogger(__name__)

CREDENTIAL_PREFIX = "EC"
_BASE36_UPPER = string.digits + string.ascii_uppercase


@dataclass(frozen=True, slots=True)
class Verification:
    valid: bool
    message: str
    certificate: Certificate
    course_title: str | None


def generate_credential_id(course_id: str, user_id: str) -> str:
    """EC-<course id tail>-<user id tail>-<4 random base-36 chars>.

    Human-readable, best-effort unique; the credential_id unique index
    rejects the rare collision.
    """
    suffix = "".join(secrets.choice(_BASE36_UPPER) for _ in range(4))
    return f"{CREDENTIAL_PREFIX}-{course_id[-4:]}-{user_id[-4:]}-{suffix}"


async def issue_certificate(
    repos: Repos,
    *,
    user_id: str,
    assessment: Assessment,
    course: Course,
    score: int,
    now: int | None = None,
) -> tuple[Certificate, bool]:
    """Return the certificate for this triple, creating it if absent.

    Returns (certificate, created).  An existing certificate is returned
    unchanged: no re-issuance and no score update.
    """
    issued_at = now if now is not None else utc_timestamp()
    candidate = Certificate.new(
        user_id=user_id,
        course_id=course.id,
        assessment_id=assessment.id,
        title=f"{course.title} Certificate",
        credential_id=generate_credential_id(course.id, user_id),
        grade=letter_grade(score),
        score=score,
        issued_at=issued_at,
        expires_at=add_years(issued_at, SETTINGS.certificate_validity_years),
        skills=course.tags,
        issuer=SETTINGS.certificate_issuer,
    )

    certificate, created = await repos.certificates.add_if_absent(candidate)
    if not created:
        CERTIFICATES_ISSUED.labels(result="existing").inc()
        logger.info(
            "Certificate already issued user=%s assessment=%s credential=%s",
            user_id,
            assessment.id,
            certificate.credential_id,
        )
        return certificate, False

    await repos.learners.add_certificate(user_id, certificate.id)
    CERTIFICATES_ISSUED.labels(result="created").inc()
    logger.info(
        "Certificate issued user=%s assessment=%s credential=%s grade=%s",
        user_id,
        assessment.id,
        certificate.credential_id,
        certificate.grade,
        extra={
            "user_id": user_id,
            "assessment_id": assessment.id,
            "course_id": course.id,
            "credential_id": certificate.credential_id,
        },
    )
    return certificate, True


async def generate_certificate(
    repos: Repos,
    *,
    user_id: str,
    assessment_id: str,
    course_id: str,
    now: int | None = None,
) -> tuple[Certificate, bool]:
    """Explicit issuance for a user who passed the assessment.

    Raises:
        AssessmentNotFoundError, CourseNotFoundError: unknown ids.
        CertificateNotEarnedError: no submission, a failing score, or an
            assessment that belongs to another course.
    """
    existing = await repos.certificates.get_by_key(user_id, assessment_id, course_id)
    if existing is not None:
        return existing, False

    assessment = await repos.assessments.get(assessment_id)
    if assessment is None:
        raise AssessmentNotFoundError(assessment_id)

    course = await repos.courses.get(course_id)
    if course is None:
        raise CourseNotFoundError(course_id)
    if assessment.course_id != course.id:
        raise CertificateNotEarnedError("Assessment does not belong to this course")

    submission = await repos.assessments.get_submission(assessment_id, user_id)
    if submission is None:
        raise CertificateNotEarnedError("You haven't completed this assessment yet")

    if not is_passed(submission.score, assessment.passing_score):
        logger.info(
            "Certificate refused user=%s assessment=%s score=%d passing=%d",
            user_id,
            assessment_id,
            submission.score,
            assessment.passing_score,
        )
        raise CertificateNotEarnedError(
            "You need to pass the assessment to earn a certificate"
        )

    return await issue_certificate(
        repos,
        user_id=user_id,
        assessment=assessment,
        course=course,
        score=submission.score,
        now=now,
    )


async def list_certificates(repos: Repos, user_id: str) -> list[Certificate]:
    return await repos.certificates.list_by_user(user_id)


async def get_certificate(
    repos: Repos, certificate_id: str, principal: Principal
) -> Certificate:
    """Owners and staff may read a certificate; anyone else is refused."""
    certificate = await repos.certificates.get_by_id(certificate_id)
    if certificate is None:
        raise CertificateNotFoundError(certificate_id)
    if certificate.user_id != principal.user_id and not principal.is_staff():
        logger.warning(
            "Certificate access denied user=%s certificate=%s",
            principal.user_id,
            certificate_id,
        )
        raise PermissionDeniedError("Not authorized to view this certificate")
    return certificate


async def verify_certificate(
    repos: Repos, credential_id: str, now: int | None = None
) -> Verification:
    certificate = await repos.certificates.get_by_credential_id(credential_id)
    if certificate is None:
        raise CertificateNotFoundError(credential_id)

    current = now if now is not None else utc_timestamp()
    expired = certificate.is_expired(current)
    revoked = certificate.is_revoked()
    if expired:
        message = "Certificate has expired"
    elif revoked:
        message = "Certificate has been revoked"
    else:
        message = "Certificate is valid"

    course = await repos.courses.get(certificate.course_id)
    return Verification(
        valid=not expired and not revoked,
        message=message,
        certificate=certificate,
        course_title=course.title if course is not None else None,
    )


async def revoke_certificate(
    repos: Repos, certificate_id: str, principal: Principal
) -> Certificate:
    certificate = await repos.certificates.set_status(certificate_id, REVOKED)
    if certificate is None:
        raise CertificateNotFoundError(certificate_id)
    logger.warning(
        "Certificate revoked credential=%s by=%s",
        certificate.credential_id,
        principal.user_id,
    )
    return certificate
