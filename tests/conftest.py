from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from chatapi.database import create_engine, create_session_factory, init_db
from chatapi.messages import MessageLog
from chatapi.registry import ParticipantRegistry
from chatapi.store import ChatStore


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}"


@pytest.fixture
def run_chat(clock, database_url):
    """Run ``scenario(registry, messages)`` against a fresh database file."""

    def runner(scenario, *, create_tables: bool = True, wrap_sessions=None):
        async def main():
            engine = create_engine(database_url)
            try:
                if create_tables:
                    await init_db(engine)
                sessions = create_session_factory(engine)
                if wrap_sessions is not None:
                    sessions = wrap_sessions(sessions)
                store = ChatStore(sessions)
                registry = ParticipantRegistry(store, clock=clock)
                messages = MessageLog(store, registry, clock=clock)
                return await scenario(registry, messages)
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return runner
