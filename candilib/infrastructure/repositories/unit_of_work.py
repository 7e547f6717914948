from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from candilib.infrastructure.repositories.candidats import CandidatRepository
from candilib.infrastructure.repositories.centres import CentreRepository
from candilib.infrastructure.repositories.places import PlaceRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class UnitOfWork:
    """Repositories sharing one session, committed step by step by the caller."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.candidats = CandidatRepository(session)
        self.centres = CentreRepository(session)
        self.places = PlaceRepository(session)

    async def commit(self) -> None:
        await self.session.commit()
        logger.debug("uow_commit")

    async def rollback(self) -> None:
        await self.session.rollback()
        logger.debug("uow_rollback")
