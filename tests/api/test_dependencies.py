from __future__ import annotations

import pytest

from educonnect.api.dependencies import get_repos
from educonnect.db import engine as db_engine
from educonnect.repos import registry
from educonnect.repos.pg_assessment_repo import PgAssessmentRepo
from tests.conftest import run


class _FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self) -> _FakeSession:
        return self

    async def __aexit__(self, *exc) -> bool:
        return False

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def session(monkeypatch: pytest.MonkeyPatch) -> _FakeSession:
    fake = _FakeSession()
    monkeypatch.setattr(db_engine, "async_session_factory", lambda: fake)
    return fake


def test_in_memory_repos_without_database(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(db_engine, "async_session_factory", None)

    async def _first():
        gen = get_repos()
        repos = await gen.__anext__()
        await gen.aclose()
        return repos

    assert run(_first()) is registry.IN_MEMORY_REPOS


def test_session_scope_requires_database(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(db_engine, "async_session_factory", None)

    async def _open():
        async with db_engine.session_scope():
            pass

    with pytest.raises(RuntimeError):
        run(_open())


def test_session_repos_commit_when_handler_returns(session: _FakeSession) -> None:
    async def _drive():
        gen = get_repos()
        repos = await gen.__anext__()
        assert isinstance(repos.assessments, PgAssessmentRepo)
        with pytest.raises(StopAsyncIteration):
            await gen.__anext__()

    run(_drive())
    assert (session.commits, session.rollbacks) == (1, 0)


def test_session_repos_roll_back_when_handler_raises(session: _FakeSession) -> None:
    async def _drive():
        gen = get_repos()
        await gen.__anext__()
        with pytest.raises(ValueError):
            await gen.athrow(ValueError("handler failed"))

    run(_drive())
    assert (session.commits, session.rollbacks) == (0, 1)
