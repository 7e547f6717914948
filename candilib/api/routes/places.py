from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from candilib.api.deps import get_booking_rules, get_clock, get_db_session, require_roles
from candilib.core.clock import Clock, parse_civil_iso
from candilib.domain import User
from candilib.domain.services.availability import AvailabilityService, CentreNotFoundError
from candilib.domain.services.eligibility import BookingRules, EtgExpiredError
from candilib.domain.services.reservations import CandidatNotFoundError

router = APIRouter(prefix="/candidat/places", tags=["Places"])


def _iso(dates: list[datetime]) -> list[str]:
    return [value.isoformat() for value in dates]


@router.get("", response_model=list[str])
async def get_dates_by_centre(
    nom: str = Query(..., description="Centre name"),
    departement: str | None = Query(None, description="Centre department code"),
    begin: str | None = Query(None, description="ISO date to list from"),
    end: str | None = Query(None, description="ISO date to list until"),
    date: str | None = Query(None, description="Exact ISO date-time to check"),
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["candidat"])),
    rules: BookingRules = Depends(get_booking_rules),
    clock: Clock = Depends(get_clock),
) -> list[str]:
    """Free slots of a centre found by name (and department when given)."""
    service = AvailabilityService(session, rules=rules, clock=clock)
    exact_date = parse_civil_iso(date)
    try:
        if exact_date is not None:
            dates = await service.has_available_places_by_centre(
                nom, exact_date, departement=departement
            )
        else:
            dates = await service.get_dates_by_centre(
                nom,
                candidat_id=user.user_id,
                departement=departement,
                begin=parse_civil_iso(begin),
                end=parse_civil_iso(end),
            )
    except CentreNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CandidatNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except EtgExpiredError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _iso(dates)


@router.get("/{centre_id}", response_model=list[str])
async def get_dates_by_centre_id(
    centre_id: str,
    begin: str | None = Query(None, description="ISO date to list from"),
    end: str | None = Query(None, description="ISO date to list until"),
    date: str | None = Query(None, description="Exact ISO date-time to check"),
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["candidat"])),
    rules: BookingRules = Depends(get_booking_rules),
    clock: Clock = Depends(get_clock),
) -> list[str]:
    """
    Free slots of a centre as ISO date-times.

    With ``date``, only the free slots at that exact date-time are returned.
    Otherwise the ``begin``/``end`` range is clamped to the candidate's
    visible window; an expired theory test answers 400.
    """
    service = AvailabilityService(session, rules=rules, clock=clock)
    exact_date = parse_civil_iso(date)
    if exact_date is not None:
        return _iso(await service.has_available_places(centre_id, exact_date))

    try:
        dates = await service.get_dates_by_centre_id(
            centre_id,
            candidat_id=user.user_id,
            begin=parse_civil_iso(begin),
            end=parse_civil_iso(end),
        )
    except CandidatNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except EtgExpiredError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _iso(dates)
