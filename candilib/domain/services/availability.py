from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from candilib.core.clock import Clock, to_civil
from candilib.domain.messages import CANDIDAT_NOT_FOUND, CENTRE_NOT_FOUND
from candilib.domain.services.eligibility import BookingRules, EligibilityRules
from candilib.domain.services.reservations import CandidatNotFoundError
from candilib.infrastructure.repositories.unit_of_work import UnitOfWork

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from candilib.infrastructure.db.models import Centre

logger = structlog.get_logger(__name__)


class CentreNotFoundError(Exception):
    """Raised when an exam centre cannot be resolved."""


class AvailabilityService:
    """Lists the free exam slots a candidate is allowed to see."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        rules: BookingRules | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.uow = UnitOfWork(session)
        self.eligibility = EligibilityRules(rules or BookingRules.from_settings())
        self.clock = clock or Clock()

    async def get_dates_by_centre_id(
        self,
        centre_id: str,
        *,
        candidat_id: str,
        begin: datetime | None = None,
        end: datetime | None = None,
    ) -> list[datetime]:
        """Free slot date-times of a centre, clamped to the candidate's visible window.

        Raises ``EtgExpiredError`` rather than returning an empty list when the
        theory test expires before the first bookable date.
        """
        logger.debug(
            "get_dates_by_centre_id",
            centre_id=centre_id,
            candidat_id=candidat_id,
            begin=begin.isoformat() if begin else None,
            end=end.isoformat() if end else None,
        )
        candidat = await self.uow.candidats.get_by_id(candidat_id)
        if candidat is None:
            raise CandidatNotFoundError(CANDIDAT_NOT_FOUND)

        window = self.eligibility.visible_date_window(
            begin, end, candidat=candidat, now=self.clock.now()
        )
        return await self.uow.places.list_available_dates(centre_id, window.begin, window.end)

    async def get_dates_by_centre(
        self,
        nom: str,
        *,
        candidat_id: str,
        departement: str | None = None,
        begin: datetime | None = None,
        end: datetime | None = None,
    ) -> list[datetime]:
        centre = await self._resolve_centre(nom, departement)
        return await self.get_dates_by_centre_id(
            centre.id, candidat_id=candidat_id, begin=begin, end=end
        )

    async def has_available_places(self, centre_id: str, date: datetime) -> list[datetime]:
        """Distinct free slot date-times of a centre at exactly ``date``."""
        return await self.uow.places.list_available_at(centre_id, to_civil(date))

    async def has_available_places_by_centre(
        self, nom: str, date: datetime, *, departement: str | None = None
    ) -> list[datetime]:
        centre = await self._resolve_centre(nom, departement)
        return await self.has_available_places(centre.id, date)

    async def _resolve_centre(self, nom: str, departement: str | None) -> Centre:
        if departement:
            centre = await self.uow.centres.find_by_name_and_departement(nom, departement)
        else:
            centre = await self.uow.centres.find_by_name(nom)
        if centre is None:
            raise CentreNotFoundError(CENTRE_NOT_FOUND)
        return centre
