from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from candilib.infrastructure.db.models import ArchivedPlace, ArchiveReason, Candidat, Place

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)


class CandidatRepository:
    """Persistence of candidates and their archived places."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, candidat_id: str) -> Candidat | None:
        stmt = select(Candidat).where(Candidat.id == candidat_id)
        return await self.session.scalar(stmt)

    async def update_can_book_from(self, candidat: Candidat, can_book_from: datetime) -> Candidat:
        candidat.can_book_from = can_book_from
        await self.session.flush()
        logger.info(
            "candidat_can_book_from_updated",
            candidat_id=candidat.id,
            can_book_from=can_book_from.isoformat(),
        )
        return candidat

    async def record_practical_failure(
        self,
        candidat: Candidat,
        exam_date: datetime,
        can_book_from: datetime,
    ) -> Candidat:
        candidat.nb_echecs_pratiques = (candidat.nb_echecs_pratiques or 0) + 1
        candidat.date_dernier_echec_pratique = exam_date
        candidat.can_book_from = can_book_from
        await self.session.flush()
        return candidat

    async def archive_place(
        self,
        candidat: Candidat,
        place: Place,
        reason: ArchiveReason,
        archived_at: datetime,
    ) -> ArchivedPlace:
        archived = ArchivedPlace(
            candidat_id=candidat.id,
            place_id=place.id,
            centre_id=place.centre_id,
            date=place.date,
            inspecteur=place.inspecteur,
            booked_at=place.booked_at,
            archived_at=archived_at,
            archive_reason=reason,
        )
        self.session.add(archived)
        await self.session.flush()
        return archived
