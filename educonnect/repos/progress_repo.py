from __future__ import annotations

from typing import Protocol

from educonnect.models.progress import ProgressEvent


class ProgressRepo(Protocol):
    async def append(self, event: ProgressEvent) -> tuple[ProgressEvent, bool]:
        """Store an event; (stored event, created).

        An event whose idempotency key was already used by the same user
        and course is not stored again; the first one comes back instead.
        """
        ...

    async def list_for(self, user_id: str, course_id: str) -> list[ProgressEvent]: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._events: list[ProgressEvent] = []
        self._by_key: dict[tuple[str, str, str], ProgressEvent] = {}

    async def append(self, event: ProgressEvent) -> tuple[ProgressEvent, bool]:
        if event.idempotency_key is not None:
            key = (event.user_id, event.course_id, event.idempotency_key)
            existing = self._by_key.get(key)
            if existing is not None:
                return existing, False
            self._by_key[key] = event
        self._events.append(event)
        return event, True

    async def list_for(self, user_id: str, course_id: str) -> list[ProgressEvent]:
        return [
            e
            for e in self._events
            if e.user_id == user_id and e.course_id == course_id
        ]
