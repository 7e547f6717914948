from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from candilib.core.clock import to_civil
from candilib.domain.messages import CANDIDAT_NOT_FOUND
from candilib.domain.services.eligibility import BookingRules, EligibilityRules
from candilib.domain.services.reservations import CandidatNotFoundError
from candilib.infrastructure.repositories.unit_of_work import UnitOfWork

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from candilib.infrastructure.db.models import Candidat

logger = structlog.get_logger(__name__)


class CandidatService:
    """Updates a candidate's exam record."""

    def __init__(self, session: AsyncSession, *, rules: BookingRules | None = None) -> None:
        self.uow = UnitOfWork(session)
        self.eligibility = EligibilityRules(rules or BookingRules.from_settings())

    async def record_practical_failure(self, candidat_id: str, exam_date: datetime) -> Candidat:
        """Count a failed practical exam and hold the candidate back until the retry date."""
        candidat = await self.uow.candidats.get_by_id(candidat_id)
        if candidat is None:
            raise CandidatNotFoundError(CANDIDAT_NOT_FOUND)

        exam_date = to_civil(exam_date)
        can_book_from = self.eligibility.next_eligible_date_after_failure(candidat, exam_date)
        await self.uow.candidats.record_practical_failure(candidat, exam_date, can_book_from)
        await self.uow.commit()

        await logger.ainfo(
            "practical_failure_recorded",
            candidat_id=candidat.id,
            exam_date=exam_date.isoformat(),
            nb_echecs_pratiques=candidat.nb_echecs_pratiques,
            can_book_from=can_book_from.isoformat(),
        )
        return candidat
