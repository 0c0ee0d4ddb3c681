from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

ISSUED = "issued"
REVOKED = "revoked"


@dataclass(frozen=True, slots=True)
class Certificate:
    """Issued certificate, unique per (user_id, assessment_id, course_id)."""

    id: str
    user_id: str
    course_id: str
    assessment_id: str
    title: str
    credential_id: str
    grade: str  # A-F
    score: int
    issued_at: int
    expires_at: int | None
    skills: tuple[str, ...] = ()
    issuer: str = "EduConnect"
    status: str = ISSUED  # issued|revoked

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.user_id, self.assessment_id, self.course_id)

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def is_revoked(self) -> bool:
        return self.status == REVOKED

    @staticmethod
    def new(
        *,
        user_id: str,
        course_id: str,
        assessment_id: str,
        title: str,
        credential_id: str,
        grade: str,
        score: int,
        issued_at: int,
        expires_at: int | None,
        skills: tuple[str, ...] = (),
        issuer: str = "EduConnect",
    ) -> Certificate:
        return Certificate(
            id=uuid4().hex,
            user_id=user_id,
            course_id=course_id,
            assessment_id=assessment_id,
            title=title,
            credential_id=credential_id,
            grade=grade,
            score=score,
            issued_at=issued_at,
            expires_at=expires_at,
            skills=skills,
            issuer=issuer,
        )
