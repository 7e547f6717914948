"""Tests for the free slot listing offered to candidates."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from candilib.core.clock import Clock
from candilib.domain.services.availability import AvailabilityService, CentreNotFoundError
from candilib.domain.services.eligibility import BookingRules, EtgExpiredError
from candilib.domain.services.reservations import CandidatNotFoundError
from tests.utils import create_candidat, create_centre, create_place, paris


@pytest.fixture()
def service(db: AsyncSession, rules: BookingRules, clock: Clock) -> AvailabilityService:
    return AvailabilityService(db, rules=rules, clock=clock)


class TestDatesByCentre:
    async def test_only_visible_free_dates_are_listed(
        self, db: AsyncSession, service: AvailabilityService
    ) -> None:
        centre = await create_centre(db)
        candidat = await create_candidat(db)
        other = await create_candidat(db, code_neph="093496239599")
        await create_place(db, centre, paris(2024, 6, 1, 15))
        await create_place(db, centre, paris(2024, 6, 10, 9))
        await create_place(db, centre, paris(2024, 6, 11, 9), booked_by=other)
        await create_place(db, centre, paris(2024, 8, 30, 9))
        await create_place(db, centre, paris(2024, 9, 2, 9))
        await db.commit()

        dates = await service.get_dates_by_centre_id(centre.id, candidat_id=candidat.id)

        assert dates == [paris(2024, 6, 10, 9), paris(2024, 8, 30, 9)]

    async def test_requested_range_narrows_the_listing(
        self, db: AsyncSession, service: AvailabilityService
    ) -> None:
        centre = await create_centre(db)
        candidat = await create_candidat(db)
        for day in (10, 15, 20):
            await create_place(db, centre, paris(2024, 6, day, 9))
        await db.commit()

        dates = await service.get_dates_by_centre_id(
            centre.id,
            candidat_id=candidat.id,
            begin=paris(2024, 6, 12),
            end=paris(2024, 6, 15),
        )

        assert dates == [paris(2024, 6, 15, 9)]

    async def test_restricted_candidate_sees_later_dates_only(
        self, db: AsyncSession, service: AvailabilityService
    ) -> None:
        centre = await create_centre(db)
        candidat = await create_candidat(
            db, can_book_from=paris(2024, 6, 15, 23, 59, 59, 999999)
        )
        for day in (10, 20):
            await create_place(db, centre, paris(2024, 6, day, 9))
        await db.commit()

        dates = await service.get_dates_by_centre_id(centre.id, candidat_id=candidat.id)

        assert dates == [paris(2024, 6, 20, 9)]

    async def test_lookup_by_name_and_department(
        self, db: AsyncSession, service: AvailabilityService
    ) -> None:
        centre = await create_centre(db)
        candidat = await create_candidat(db)
        await create_place(db, centre, paris(2024, 6, 10, 9))
        await db.commit()

        dates = await service.get_dates_by_centre(
            centre.nom, candidat_id=candidat.id, departement="93"
        )

        assert dates == [paris(2024, 6, 10, 9)]
        with pytest.raises(CentreNotFoundError):
            await service.get_dates_by_centre(
                centre.nom, candidat_id=candidat.id, departement="75"
            )

    async def test_expired_theory_test(self, db: AsyncSession, service: AvailabilityService) -> None:
        centre = await create_centre(db)
        candidat = await create_candidat(db, date_reussite_etg=paris(2019, 5, 1))
        await create_place(db, centre, paris(2024, 6, 10, 9))
        await db.commit()

        with pytest.raises(EtgExpiredError):
            await service.get_dates_by_centre_id(centre.id, candidat_id=candidat.id)

    async def test_unknown_candidate(self, db: AsyncSession, service: AvailabilityService) -> None:
        centre = await create_centre(db)
        await db.commit()

        with pytest.raises(CandidatNotFoundError):
            await service.get_dates_by_centre_id(centre.id, candidat_id="nobody")


class TestExactDate:
    async def test_free_places_at_a_date(
        self, db: AsyncSession, service: AvailabilityService
    ) -> None:
        centre = await create_centre(db)
        await create_place(db, centre, paris(2024, 6, 10, 9))
        await create_place(db, centre, paris(2024, 6, 10, 9))
        await db.commit()

        assert await service.has_available_places(centre.id, paris(2024, 6, 10, 9)) == [
            paris(2024, 6, 10, 9)
        ]
        assert await service.has_available_places_by_centre(
            centre.nom, paris(2024, 6, 10, 10)
        ) == []
