from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import selectinload
from candilib.core.clock import to_civil
from candilib.infrastructure.db.models import Place

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)


class PlaceRepository:
    """Queries and atomic updates over the shared pool of exam places."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_available_dates(
        self, centre_id: str, begin: datetime, end: datetime
    ) -> list[datetime]:
        """Free slot date-times of a centre within ``[begin, end]``, ordered and distinct."""
        stmt = (
            select(Place.date)
            .where(
                Place.centre_id == centre_id,
                Place.booked_by.is_(None),
                Place.date >= begin,
                Place.date <= end,
            )
            .order_by(Place.date)
        )
        return _distinct_civil((await self.session.execute(stmt)).scalars().all())

    async def list_available_at(self, centre_id: str, date: datetime) -> list[datetime]:
        stmt = (
            select(Place.date)
            .where(
                Place.centre_id == centre_id,
                Place.booked_by.is_(None),
                Place.date == date,
            )
            .order_by(Place.date)
        )
        return _distinct_civil((await self.session.execute(stmt)).scalars().all())

    async def find_and_assign(
        self,
        candidat_id: str,
        centre_id: str,
        date: datetime,
        booked_at: datetime,
    ) -> Place | None:
        """Assign one free place of ``centre_id`` at exactly ``date`` to the candidate.

        The lookup and the assignment are a single conditional UPDATE, so two
        concurrent requests for the same slot can never both win. Returns
        ``None`` when no free place matches.
        """
        free_place = (
            select(Place.id)
            .where(
                Place.centre_id == centre_id,
                Place.date == date,
                Place.booked_by.is_(None),
            )
            .order_by(Place.id)
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        stmt = (
            update(Place)
            .where(Place.id == free_place, Place.booked_by.is_(None))
            .values(booked_by=candidat_id, booked_at=booked_at)
            .returning(Place.id)
            .execution_options(synchronize_session=False)
        )
        place_id = (await self.session.execute(stmt)).scalar_one_or_none()
        if place_id is None:
            logger.info(
                "place_assign_no_match",
                candidat_id=candidat_id,
                centre_id=centre_id,
                date=date.isoformat(),
            )
            return None
        return await self.get_by_id(place_id)

    async def release(self, place: Place) -> bool:
        """Clear the assignment of ``place``; ``False`` if it was no longer held."""
        stmt = (
            update(Place)
            .where(Place.id == place.id, Place.booked_by == place.booked_by)
            .values(booked_by=None, booked_at=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning("place_release_noop", place_id=place.id, booked_by=place.booked_by)
            return False
        return True

    async def find_by_candidat(self, candidat_id: str) -> Place | None:
        stmt = (
            select(Place)
            .where(Place.booked_by == candidat_id)
            .options(selectinload(Place.centre), selectinload(Place.candidat))
            .order_by(Place.date)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def get_by_id(self, place_id: str) -> Place | None:
        stmt = (
            select(Place)
            .where(Place.id == place_id)
            .options(selectinload(Place.centre), selectinload(Place.candidat))
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)


def _distinct_civil(dates: list[datetime]) -> list[datetime]:
    seen: set[datetime] = set()
    distinct: list[datetime] = []
    for value in dates:
        civil = to_civil(value)
        if civil in seen:
            continue
        seen.add(civil)
        distinct.append(civil)
    return distinct
