from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from candilib.api.deps import get_clock, get_db_session, get_notification_service
from candilib.api.main import app
from candilib.core.clock import Clock
from candilib.domain.services.eligibility import BookingRules
from candilib.infrastructure.db.base import Base
from tests.utils import (
    NOW,
    FakeNotifier,
    create_candidat,
    create_centre,
    create_place,
    paris,
)


def _engine_for(path: Path) -> AsyncEngine:
    # A file database shared by every connection; NullPool keeps connections loop-local.
    return create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)


@pytest.fixture()
def clock() -> Clock:
    return Clock(fixed=NOW)


@pytest.fixture()
def rules() -> BookingRules:
    return BookingRules()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = _engine_for(tmp_path / "candilib.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Provide a database session for tests that need direct DB access."""
    async with session_factory() as session:
        yield session


async def seed_booking_data(session: AsyncSession) -> None:
    """One centre with a few June slots and two candidates."""
    centre = await create_centre(session, id="centre-1")
    await create_centre(
        session,
        id="centre-2",
        nom="Noisy-le-Grand",
        label="Centre d'examen de Noisy-le-Grand",
        adresse="rue du Docteur Sureau, 93160 Noisy-le-Grand",
    )
    await create_candidat(session, id="candidat-1")
    await create_candidat(
        session,
        id="candidat-etg",
        code_neph="093496239513",
        nom_naissance="MARTIN",
        email="martin@example.com",
        date_reussite_etg=paris(2019, 5, 1),
    )

    for date in (
        paris(2024, 6, 1, 15),
        paris(2024, 6, 10, 9),
        paris(2024, 6, 10, 9),
        paris(2024, 6, 10, 10),
        paris(2024, 6, 20, 9),
        paris(2024, 9, 20, 9),
    ):
        await create_place(session, centre, date)
    await session.commit()


@pytest.fixture()
def test_client(tmp_path: Path, clock: Clock, notifier: FakeNotifier) -> Iterator[TestClient]:
    engine = _engine_for(tmp_path / "api.db")
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def _init_db() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with session_factory() as session:
            await seed_booking_data(session)

    asyncio.run(_init_db())

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_service] = lambda: notifier
    with TestClient(app) as client:
        client.session_factory = session_factory  # type: ignore
        client.notifier = notifier  # type: ignore
        yield client
    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())
