"""Certificate endpoints.

GET /api/certificates/verify/{credentialId} is public: employers and other
third parties check a credential without an account.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse

from educonnect.api.dependencies import get_repos, require_any_role, require_user
from educonnect.api.schemas import ApiModel
from educonnect.models.certificate import Certificate
from educonnect.models.principal import STAFF_ROLES, Principal
from educonnect.repos.registry import Repos
from educonnect.services import certificate_service
from educonnect.services.errors import (
    AssessmentNotFoundError,
    CertificateNotEarnedError,
    CertificateNotFoundError,
    CourseNotFoundError,
    PermissionDeniedError,
)

router = APIRouter(prefix="/api/certificates", tags=["certificates"])

_require_staff = require_any_role(STAFF_ROLES)


class GenerateCertificateIn(ApiModel):
    assessment_id: str
    course_id: str


class CertificateOut(ApiModel):
    id: str
    user_id: str
    course_id: str
    assessment_id: str
    title: str
    credential_id: str
    grade: str
    score: int
    issue_date: int
    expiry_date: int | None
    skills: list[str]
    issuer: str
    status: str

    @classmethod
    def from_certificate(cls, c: Certificate) -> CertificateOut:
        return cls(
            id=c.id,
            user_id=c.user_id,
            course_id=c.course_id,
            assessment_id=c.assessment_id,
            title=c.title,
            credential_id=c.credential_id,
            grade=c.grade,
            score=c.score,
            issue_date=c.issued_at,
            expiry_date=c.expires_at,
            skills=list(c.skills),
            issuer=c.issuer,
            status=c.status,
        )


class GenerateCertificateOut(ApiModel):
    message: str
    certificate: CertificateOut


class VerifiedCertificateOut(ApiModel):
    title: str
    credential_id: str
    user_id: str
    course_title: str | None
    issue_date: int
    expiry_date: int | None
    grade: str
    skills: list[str]
    issuer: str
    status: str


class VerifyOut(ApiModel):
    valid: bool
    message: str
    certificate: VerifiedCertificateOut | None = None


def _certificate_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail="Certificate not found"
    )


@router.post(
    "/generate",
    response_model=GenerateCertificateOut,
    responses={201: {"model": GenerateCertificateOut}},
)
async def generate_certificate(
    body: GenerateCertificateIn,
    response: Response,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> GenerateCertificateOut:
    try:
        certificate, created = await certificate_service.generate_certificate(
            repos,
            user_id=principal.user_id,
            assessment_id=body.assessment_id,
            course_id=body.course_id,
        )
    except AssessmentNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Assessment not found"
        ) from None
    except CourseNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
        ) from None
    except CertificateNotEarnedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from None

    if created:
        response.status_code = status.HTTP_201_CREATED
        message = "Certificate generated successfully"
    else:
        message = "Certificate already exists"
    return GenerateCertificateOut(
        message=message, certificate=CertificateOut.from_certificate(certificate)
    )


@router.get("/verify/{credential_id}", response_model=VerifyOut)
async def verify_certificate(
    credential_id: str,
    repos: Annotated[Repos, Depends(get_repos)],
):
    try:
        result = await certificate_service.verify_certificate(repos, credential_id)
    except CertificateNotFoundError:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"valid": False, "message": "Certificate not found"},
        )

    c = result.certificate
    return VerifyOut(
        valid=result.valid,
        message=result.message,
        certificate=VerifiedCertificateOut(
            title=c.title,
            credential_id=c.credential_id,
            user_id=c.user_id,
            course_title=result.course_title,
            issue_date=c.issued_at,
            expiry_date=c.expires_at,
            grade=c.grade,
            skills=list(c.skills),
            issuer=c.issuer,
            status=c.status,
        ),
    )


@router.get("", response_model=list[CertificateOut])
async def list_certificates(
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> list[CertificateOut]:
    certificates = await certificate_service.list_certificates(
        repos, principal.user_id
    )
    return [CertificateOut.from_certificate(c) for c in certificates]


@router.get("/{certificate_id}", response_model=CertificateOut)
async def get_certificate(
    certificate_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> CertificateOut:
    try:
        certificate = await certificate_service.get_certificate(
            repos, certificate_id, principal
        )
    except CertificateNotFoundError:
        raise _certificate_not_found() from None
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from None
    return CertificateOut.from_certificate(certificate)


@router.post("/{certificate_id}/revoke", response_model=CertificateOut)
async def revoke_certificate(
    certificate_id: str,
    principal: Annotated[Principal, Depends(_require_staff)],
    repos: Annotated[Repos, Depends(get_repos)],
) -> CertificateOut:
    try:
        certificate = await certificate_service.revoke_certificate(
            repos, certificate_id, principal
        )
    except CertificateNotFoundError:
        raise _certificate_not_found() from None
    return CertificateOut.from_certificate(certificate)
