from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from candilib.api.deps import (
    get_booking_rules,
    get_clock,
    get_db_session,
    get_notification_service,
    require_roles,
)
from candilib.api.schemas.reservations import (
    CentreItem,
    ReservationCancelResponse,
    ReservationCreateRequest,
    ReservationCreateResponse,
    ReservationResponse,
    ReservationSummary,
)
from candilib.core.clock import Clock, parse_civil_iso, to_civil
from candilib.domain import User
from candilib.domain.messages import INTERNAL_ERROR
from candilib.domain.services.eligibility import BookingRules
from candilib.domain.services.notifications import NotificationService
from candilib.domain.services.reservations import (
    CandidatNotFoundError,
    NoReservationError,
    ReservationIntegrityError,
    ReservationService,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/candidat/reservations", tags=["Reservations"])

MISSING_FIELD_LABELS = (
    ("centre_id", " du centre"),
    ("date", " de la date reservation"),
    ("is_accompanied", " d'être accompagné"),
    ("has_dual_control_car", " d'avoir un véhicule à double commande"),
)


def missing_fields_message(payload: ReservationCreateRequest) -> str | None:
    """French message naming every missing field, or ``None`` when complete.

    Boolean certifications count as missing unless they are true.
    """
    missing = []
    for field_name, label in MISSING_FIELD_LABELS:
        value = getattr(payload, field_name)
        if field_name == "date":
            value = parse_civil_iso(value)
        if not value:
            missing.append(label)
    if not missing:
        return None

    joined = missing[0]
    for index, label in enumerate(missing[1:], start=1):
        joined += ("," if index < len(missing) - 1 else " ou") + label
    return f"Les informations {joined} sont manquant"


def _reservation_service(
    session: AsyncSession,
    rules: BookingRules,
    clock: Clock,
    notifier: NotificationService,
) -> ReservationService:
    return ReservationService(session, rules=rules, clock=clock, notifier=notifier)


@router.get("", response_model=ReservationResponse | None)
async def get_reservation(
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["candidat"])),
    rules: BookingRules = Depends(get_booking_rules),
    clock: Clock = Depends(get_clock),
    notifier: NotificationService = Depends(get_notification_service),
) -> ReservationResponse | None:
    """Current reservation of the candidate, with the rules that apply to it."""
    service = _reservation_service(session, rules, clock, notifier)
    view = await service.get_reservation(user.user_id)
    if view is None:
        return None

    return ReservationResponse(
        place_id=view.place_id,
        date=view.date,
        centre=CentreItem(**view.centre),
        last_date_to_cancel=view.last_date_to_cancel,
        can_book_from=view.can_book_from,
        date_dernier_echec_pratique=view.date_dernier_echec_pratique,
        time_out_to_retry=view.time_out_to_retry,
        day_to_forbid_cancel=view.day_to_forbid_cancel,
    )


@router.post("", response_model=ReservationCreateResponse)
async def create_reservation(
    payload: ReservationCreateRequest,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["candidat"])),
    rules: BookingRules = Depends(get_booking_rules),
    clock: Clock = Depends(get_clock),
    notifier: NotificationService = Depends(get_notification_service),
) -> ReservationCreateResponse:
    """
    Book the place of a centre at an exact date-time.

    - 400 when a field is missing
    - 200 with ``success: false`` when the booking is refused (same place,
      too early, no free place left)
    - a mail failure keeps the booking and reports ``statusmail: false``
    """
    logger.info(
        "candidat_set_reservation",
        candidat_id=user.user_id,
        centre_id=payload.centre_id,
        date=payload.date,
        is_accompanied=payload.is_accompanied,
        has_dual_control_car=payload.has_dual_control_car,
    )
    message = missing_fields_message(payload)
    if message is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    service = _reservation_service(session, rules, clock, notifier)
    try:
        outcome = await service.book(
            candidat_id=user.user_id,
            centre_id=payload.centre_id,
            date=parse_civil_iso(payload.date),
        )
    except CandidatNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except ReservationIntegrityError as exc:
        logger.error("reservation_integrity_error", candidat_id=user.user_id, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR
        ) from exc

    if not outcome.success:
        return ReservationCreateResponse(
            success=False,
            message=outcome.message,
            reason=outcome.reason.value if outcome.reason else None,
            can_book_after=outcome.eligible_date,
        )

    place = outcome.place
    return ReservationCreateResponse(
        success=True,
        message=outcome.message,
        statusmail=outcome.statusmail,
        reservation=ReservationSummary(
            date=to_civil(place.date),
            centre=place.centre.nom,
            departement=place.centre.departement,
            is_booked=True,
        ),
        date_after_book=outcome.replaced.date_after_book if outcome.replaced else None,
    )


@router.delete("", response_model=ReservationCancelResponse)
async def cancel_reservation(
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["candidat"])),
    rules: BookingRules = Depends(get_booking_rules),
    clock: Clock = Depends(get_clock),
    notifier: NotificationService = Depends(get_notification_service),
) -> ReservationCancelResponse:
    """Cancel the candidate's reservation, applying the late-cancellation penalty."""
    service = _reservation_service(session, rules, clock, notifier)
    try:
        result = await service.cancel(candidat_id=user.user_id)
    except NoReservationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except ReservationIntegrityError as exc:
        logger.error("reservation_integrity_error", candidat_id=user.user_id, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR
        ) from exc

    return ReservationCancelResponse(
        success=True,
        statusmail=result.statusmail,
        message=result.message,
        date_after_book=result.date_after_book,
    )
