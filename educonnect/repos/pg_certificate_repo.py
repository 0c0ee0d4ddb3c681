"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from educonnect.db.tables import CertificateRow
from educonnect.models.certificate import Certificate


class PgCertificateRepo:
    """Satisfies the CertificateRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, certificate_id: str) -> Certificate | None:
        row = await self._session.get(CertificateRow, certificate_id)
        if row is None:
            return None
        return _row_to_certificate(row)

    async def get_by_credential_id(self, credential_id: str) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.credential_id == credential_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def get_by_key(
        self, user_id: str, assessment_id: str, course_id: str
    ) -> Certificate | None:
        stmt = select(CertificateRow).where(
            CertificateRow.user_id == user_id,
            CertificateRow.assessment_id == assessment_id,
            CertificateRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def add_if_absent(self, certificate: Certificate) -> tuple[Certificate, bool]:
        """Single-statement upsert on the (user, assessment, course) constraint.

        ON CONFLICT DO NOTHING returns no row when another request already
        issued the certificate; the stored one is read back and returned.
        """
        stmt = (
            pg_insert(CertificateRow)
            .values(
                id=certificate.id,
                user_id=certificate.user_id,
                course_id=certificate.course_id,
                assessment_id=certificate.assessment_id,
                title=certificate.title,
                credential_id=certificate.credential_id,
                grade=certificate.grade,
                score=certificate.score,
                skills=list(certificate.skills),
                issuer=certificate.issuer,
                issued_at=certificate.issued_at,
                expires_at=certificate.expires_at,
                status=certificate.status,
            )
            .on_conflict_do_nothing(constraint="uq_certificates_user_assessment_course")
            .returning(CertificateRow.id)
        )
        # Savepoint: a failed insert must not poison the caller's transaction
        async with self._session.begin_nested():
            inserted_id = (await self._session.execute(stmt)).scalar_one_or_none()
        if inserted_id is not None:
            return certificate, True

        existing = await self.get_by_key(*certificate.key)
        if existing is None:
            raise RuntimeError("certificate upsert conflicted but no row was found")
        return existing, False

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.user_id == user_id)
            .order_by(CertificateRow.issued_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]

    async def set_status(self, certificate_id: str, status: str) -> Certificate | None:
        stmt = (
            update(CertificateRow)
            .where(CertificateRow.id == certificate_id)
            .values(status=status)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        # The identity map may hold a stale row from an earlier read
        self._session.expire_all()
        return await self.get_by_id(certificate_id)


def _row_to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        assessment_id=row.assessment_id,
        title=row.title,
        credential_id=row.credential_id,
        grade=row.grade,
        score=row.score,
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        skills=tuple(row.skills or ()),
        issuer=row.issuer,
        status=row.status,
    )
