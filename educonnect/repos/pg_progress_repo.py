"""PostgreSQL implementation of ProgressRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from educonnect.db.tables import ProgressEventRow
from educonnect.models.progress import ProgressEvent


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, event: ProgressEvent) -> tuple[ProgressEvent, bool]:
        stmt = (
            pg_insert(ProgressEventRow)
            .values(
                id=event.id,
                user_id=event.user_id,
                course_id=event.course_id,
                occurred_at=event.occurred_at,
                type=event.type,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                payload_json=event.payload_json,
                idempotency_key=event.idempotency_key,
            )
            .on_conflict_do_nothing(constraint="uq_progress_events_idempotency")
            .returning(ProgressEventRow.id)
        )
        async with self._session.begin_nested():
            inserted_id = (await self._session.execute(stmt)).scalar_one_or_none()
        if inserted_id is not None:
            return event, True

        existing = (
            await self._session.execute(
                select(ProgressEventRow).where(
                    ProgressEventRow.user_id == event.user_id,
                    ProgressEventRow.course_id == event.course_id,
                    ProgressEventRow.idempotency_key == event.idempotency_key,
                )
            )
        ).scalar_one()
        return _row_to_event(existing), False

    async def list_for(self, user_id: str, course_id: str) -> list[ProgressEvent]:
        stmt = (
            select(ProgressEventRow)
            .where(
                ProgressEventRow.user_id == user_id,
                ProgressEventRow.course_id == course_id,
            )
            .order_by(ProgressEventRow.occurred_at, ProgressEventRow.id)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_event(r) for r in rows]


def _row_to_event(row: ProgressEventRow) -> ProgressEvent:
    return ProgressEvent(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        occurred_at=row.occurred_at,
        type=row.type,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        payload_json=row.payload_json,
        idempotency_key=row.idempotency_key,
    )
