"""PostgreSQL implementation of LearnerRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from educonnect.db.tables import EnrollmentRow, LearnerCertificateRow
from educonnect.models.learner import Enrollment, Learner
from educonnect.repos.learner_repo import DuplicateEnrollmentError


class PgLearnerRepo:
    """Satisfies the LearnerRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> Learner:
        enrolled = (
            await self._session.execute(
                select(EnrollmentRow.course_id)
                .where(EnrollmentRow.user_id == user_id)
                .order_by(EnrollmentRow.enrolled_at)
            )
        ).scalars().all()
        certificates = (
            await self._session.execute(
                select(LearnerCertificateRow.certificate_id).where(
                    LearnerCertificateRow.user_id == user_id
                )
            )
        ).scalars().all()
        return Learner(
            user_id=user_id,
            enrolled_course_ids=tuple(enrolled),
            certificate_ids=tuple(certificates),
        )

    async def enroll(self, enrollment: Enrollment) -> Enrollment:
        row = EnrollmentRow(
            user_id=enrollment.user_id,
            course_id=enrollment.course_id,
            enrolled_at=enrollment.enrolled_at,
            status=enrollment.status,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError:
            raise DuplicateEnrollmentError(
                (enrollment.user_id, enrollment.course_id)
            ) from None
        return enrollment

    async def is_enrolled(self, user_id: str, course_id: str) -> bool:
        row = await self._session.get(EnrollmentRow, (user_id, course_id))
        return row is not None

    async def add_certificate(self, user_id: str, certificate_id: str) -> None:
        stmt = (
            pg_insert(LearnerCertificateRow)
            .values(user_id=user_id, certificate_id=certificate_id)
            .on_conflict_do_nothing()
        )
        await self._session.execute(stmt)
