from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from candilib.infrastructure.db.models import Centre

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class CentreRepository:
    """Read access to exam centre reference data."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_name(self, nom: str) -> Centre | None:
        stmt = select(Centre).where(Centre.nom == nom)
        return await self.session.scalar(stmt)

    async def find_by_name_and_departement(self, nom: str, departement: str) -> Centre | None:
        stmt = select(Centre).where(Centre.nom == nom, Centre.departement == departement)
        return await self.session.scalar(stmt)
