"""
Reservation booking and cancellation.

A booking attempt goes through validation (same-slot guard, eligibility
dates), the atomic assignment of a free place, then the convocation email.
The assignment is committed before any email is sent: a mail failure only
downgrades ``statusmail``.

Cancelling records the penalty (``can_book_from``) before releasing the
place, so an interrupted cancellation can leave a penalty with the place
still held, never a freed place without its penalty.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

import structlog
from candilib.core.clock import Clock, format_french_date, to_civil
from candilib.domain.messages import (
    CAN_BOOK_AFTER,
    CANCEL_RESA_WITH_MAIL_SENT,
    CANCEL_RESA_WITH_NO_MAIL_SENT,
    CANDIDAT_NOT_FOUND,
    NO_CANDIDAT_TO_CANCEL,
    NO_PLACE_AVAILABLE,
    NO_RESERVATION,
    SAME_RESA_ASKED,
    SAVE_RESA_WITH_MAIL_SENT,
    SAVE_RESA_WITH_NO_MAIL_SENT,
)
from candilib.domain.services.eligibility import BookingRules, EligibilityRules
from candilib.domain.services.notifications import NotificationService
from candilib.infrastructure.db.models import ArchiveReason
from candilib.infrastructure.repositories.unit_of_work import UnitOfWork

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from candilib.infrastructure.db.models import Candidat, Place

logger = structlog.get_logger(__name__)


class CandidatNotFoundError(Exception):
    """Raised when the candidate behind a request does not exist."""


class NoReservationError(Exception):
    """Raised when a candidate asks to cancel without holding a place."""


class ReservationIntegrityError(Exception):
    """Raised when stored reservations contradict the booking invariants."""


class BookingRejection(str, enum.Enum):
    SAME_SLOT_REQUESTED = "same_slot_requested"
    BOOKING_NOT_YET_ALLOWED = "booking_not_yet_allowed"
    NO_AVAILABLE_SLOT = "no_available_slot"


@dataclass(slots=True)
class CancellationResult:
    statusmail: bool
    message: str
    date_after_book: date | None = None


@dataclass(slots=True)
class BookingOutcome:
    success: bool
    message: str
    reason: BookingRejection | None = None
    eligible_date: datetime | None = None
    place: Place | None = None
    statusmail: bool | None = None
    replaced: CancellationResult | None = None


@dataclass(slots=True)
class ReservationView:
    place_id: str
    date: datetime
    centre: dict[str, str]
    last_date_to_cancel: datetime
    can_book_from: datetime | None
    date_dernier_echec_pratique: datetime | None
    time_out_to_retry: int
    day_to_forbid_cancel: int


class ReservationService:
    """Books and cancels exam places on behalf of a candidate."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        rules: BookingRules | None = None,
        clock: Clock | None = None,
        notifier: NotificationService | None = None,
    ) -> None:
        self.uow = UnitOfWork(session)
        self.rules = rules or BookingRules.from_settings()
        self.eligibility = EligibilityRules(self.rules)
        self.clock = clock or Clock()
        self.notifier = notifier or NotificationService()

    async def get_reservation(self, candidat_id: str) -> ReservationView | None:
        place = await self.uow.places.find_by_candidat(candidat_id)
        if place is None:
            return None

        candidat = place.candidat or await self.uow.candidats.get_by_id(candidat_id)
        return ReservationView(
            place_id=place.id,
            date=to_civil(place.date),
            centre={
                "id": place.centre.id,
                "nom": place.centre.nom,
                "label": place.centre.label,
                "adresse": place.centre.adresse,
                "departement": place.centre.departement,
            },
            last_date_to_cancel=self.eligibility.last_penalty_free_cancel_date(place.date),
            can_book_from=_civil_or_none(candidat.can_book_from) if candidat else None,
            date_dernier_echec_pratique=(
                _civil_or_none(candidat.date_dernier_echec_pratique) if candidat else None
            ),
            time_out_to_retry=self.rules.timeout_to_retry,
            day_to_forbid_cancel=self.rules.days_forbid_cancel,
        )

    async def book(self, *, candidat_id: str, centre_id: str, date: datetime) -> BookingOutcome:
        """Book the place of ``centre_id`` at exactly ``date`` for the candidate.

        Rejections (same slot, too early, no free place) are returned as an
        unsuccessful ``BookingOutcome`` and leave every store untouched.
        """
        candidat = await self.uow.candidats.get_by_id(candidat_id)
        if candidat is None:
            raise CandidatNotFoundError(CANDIDAT_NOT_FOUND)

        requested = to_civil(date)
        held = await self.uow.places.find_by_candidat(candidat_id)

        if held is not None and _is_same_slot(held, centre_id, requested):
            return await self._reject(
                candidat_id, BookingRejection.SAME_SLOT_REQUESTED, SAME_RESA_ASKED
            )

        now = self.clock.now()
        eligible_date = self.eligibility.booking_gate(
            candidat,
            requested,
            now,
            held_place_date=held.date if held is not None else None,
        )
        if eligible_date is not None:
            return await self._reject(
                candidat_id,
                BookingRejection.BOOKING_NOT_YET_ALLOWED,
                CAN_BOOK_AFTER + format_french_date(eligible_date),
                eligible_date=eligible_date,
            )

        place = await self.uow.places.find_and_assign(candidat_id, centre_id, requested, now)
        if place is None:
            return await self._reject(
                candidat_id, BookingRejection.NO_AVAILABLE_SLOT, NO_PLACE_AVAILABLE
            )
        await self.uow.commit()
        await logger.ainfo(
            "booking_committed",
            candidat_id=candidat_id,
            place_id=place.id,
            centre_id=centre_id,
            date=requested.isoformat(),
        )

        replaced = None
        if held is not None:
            place_id, held_id = place.id, held.id
            try:
                replaced = await self.remove_reservation(held, is_modification=True)
            except ReservationIntegrityError as exc:
                # the new place stays committed
                await logger.aerror(
                    "modification_release_failed",
                    candidat_id=candidat_id,
                    place_id=place_id,
                    previous_place_id=held_id,
                    error=str(exc),
                )
                place = await self.uow.places.get_by_id(place_id)

        statusmail = await self._notify_booking(place)
        return BookingOutcome(
            success=True,
            message=SAVE_RESA_WITH_MAIL_SENT if statusmail else SAVE_RESA_WITH_NO_MAIL_SENT,
            place=place,
            statusmail=statusmail,
            replaced=replaced,
        )

    async def cancel(self, *, candidat_id: str) -> CancellationResult:
        place = await self.uow.places.find_by_candidat(candidat_id)
        if place is None:
            raise NoReservationError(NO_RESERVATION)
        return await self.remove_reservation(place, is_modification=False)

    async def remove_reservation(
        self,
        place: Place,
        *,
        is_modification: bool = False,
        log_context: dict[str, Any] | None = None,
    ) -> CancellationResult:
        """Release a booked place, applying the late-cancellation penalty first."""
        log = logger.bind(
            **(log_context or {}),
            func="remove_reservation",
            is_modification=is_modification,
            booked_place_id=place.id,
        )
        candidat = place.candidat
        if candidat is None:
            raise ReservationIntegrityError(NO_CANDIDAT_TO_CANCEL)

        log = log.bind(action="CANCEL_BOOKING_RULES", candidat_id=candidat.id)
        date_after_book = await self._apply_cancel_rules(candidat, place.date)

        log = log.bind(action="REMOVE_BOOKING")
        place_id = place.id
        if not await self.uow.places.release(place):
            # rollback expires every loaded instance, place included
            await self.uow.rollback()
            raise ReservationIntegrityError(f"La place {place_id} n'est plus réservée")

        log = log.bind(action="ARCHIVE_PLACE")
        reason = ArchiveReason.MODIFIED if is_modification else ArchiveReason.CANCELLED
        await self.uow.candidats.archive_place(candidat, place, reason, self.clock.now())
        await self.uow.commit()

        log = log.bind(action="SEND_MAIL")
        statusmail = True
        try:
            await self.notifier.send_cancellation_notice(candidat, place)
        except Exception as exc:
            await log.aerror(
                "cancel_booking_mail_failed",
                action="FAILED_SEND_MAIL",
                description=str(exc),
                exc_info=exc,
            )
            statusmail = False

        message = _cancellation_message(statusmail, is_modification, date_after_book)
        await log.ainfo(
            "cancel_booking",
            success=True,
            statusmail=statusmail,
            description=message,
        )
        return CancellationResult(
            statusmail=statusmail,
            message=message,
            date_after_book=date_after_book.date() if date_after_book else None,
        )

    async def _apply_cancel_rules(self, candidat: Candidat, place_date: datetime) -> datetime | None:
        """Persist the new ``can_book_from`` when the cancellation comes too late."""
        if self.eligibility.can_cancel_without_penalty(place_date, self.clock.now()):
            return None

        can_book_from = self.eligibility.next_eligible_date_after_failure(candidat, place_date)
        await self.uow.candidats.update_can_book_from(candidat, can_book_from)
        await self.uow.commit()
        return can_book_from

    async def _notify_booking(self, place: Place) -> bool:
        try:
            await self.notifier.send_booking_confirmation(place)
        except Exception as exc:
            candidat = place.candidat
            await logger.awarning(
                "booking_mail_failed",
                nom_naissance=candidat.nom_naissance if candidat else None,
                code_neph=candidat.code_neph if candidat else None,
                centre=place.centre.nom,
                departement=place.centre.departement,
                date=to_civil(place.date).isoformat(),
            )
            await logger.aerror("booking_mail_error", error=str(exc), exc_info=exc)
            return False
        return True

    async def _reject(
        self,
        candidat_id: str,
        reason: BookingRejection,
        message: str,
        *,
        eligible_date: datetime | None = None,
    ) -> BookingOutcome:
        await logger.awarning(
            "booking_rejected",
            candidat_id=candidat_id,
            reason=reason.value,
            description=message,
        )
        return BookingOutcome(
            success=False,
            message=message,
            reason=reason,
            eligible_date=eligible_date,
        )


def _is_same_slot(held: Place, centre_id: str, requested: datetime) -> bool:
    return held.centre_id == centre_id and to_civil(held.date) == requested


def _cancellation_message(
    statusmail: bool, is_modification: bool, date_after_book: datetime | None
) -> str:
    base = CANCEL_RESA_WITH_MAIL_SENT if statusmail else CANCEL_RESA_WITH_NO_MAIL_SENT
    if date_after_book is None:
        return base
    penalty = CAN_BOOK_AFTER + format_french_date(date_after_book)
    if is_modification and statusmail:
        return penalty
    return f"{base} {penalty}"


def _civil_or_none(value: datetime | None) -> datetime | None:
    return to_civil(value) if value is not None else None
