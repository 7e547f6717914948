"""
Temporal eligibility rules for booking and cancelling exam places.

All functions are pure: "now" and the rule constants are passed in, and every
comparison happens in the civil timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from candilib.core.clock import (
    end_of_day,
    format_french_date,
    plus_days,
    plus_months,
    plus_years,
    start_of_day,
    to_civil,
    whole_days_between,
)
from candilib.core.config import Settings, get_settings
from candilib.domain.messages import CANDIDAT_DATE_ETG_KO

if TYPE_CHECKING:
    from candilib.infrastructure.db.models import Candidat


class EtgExpiredError(Exception):
    """Raised when the candidate's theory test expires before any bookable date."""

    def __init__(self, expiry: datetime) -> None:
        super().__init__(CANDIDAT_DATE_ETG_KO + format_french_date(expiry))
        self.expiry = expiry


@dataclass(frozen=True, slots=True)
class BookingRules:
    """Rule constants, in days unless the name says otherwise."""

    delay_to_book: int = 0
    days_forbid_cancel: int = 7
    timeout_to_retry: int = 45
    number_of_visible_months: int = 3
    nb_years_etg_expired: int = 5

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> BookingRules:
        settings = settings or get_settings()
        return cls(
            delay_to_book=settings.delay_to_book,
            days_forbid_cancel=settings.days_forbid_cancel,
            timeout_to_retry=settings.timeout_to_retry,
            number_of_visible_months=settings.number_of_visible_months,
            nb_years_etg_expired=settings.nb_years_etg_expired,
        )


@dataclass(frozen=True, slots=True)
class DateWindow:
    begin: datetime
    end: datetime


class EligibilityRules:
    """Computes the dates gating what a candidate may book or cancel."""

    def __init__(self, rules: BookingRules) -> None:
        self.rules = rules

    def default_bookable_date(self, now: datetime) -> datetime:
        if self.rules.delay_to_book:
            return plus_days(start_of_day(now), self.rules.delay_to_book)
        return end_of_day(now)

    def earliest_bookable_date(self, candidat: Candidat, now: datetime) -> datetime:
        """Latest of the default booking delay and the stored `can_book_from`."""
        default = self.default_bookable_date(now)
        if candidat.can_book_from is not None:
            can_book_from = to_civil(candidat.can_book_from)
            if can_book_from > default:
                return can_book_from
        return default

    def last_penalty_free_cancel_date(self, slot_date: datetime) -> datetime:
        return start_of_day(plus_days(to_civil(slot_date), -self.rules.days_forbid_cancel))

    def can_cancel_without_penalty(self, slot_date: datetime, now: datetime) -> bool:
        last_date = self.last_penalty_free_cancel_date(slot_date)
        return whole_days_between(last_date, to_civil(now)) >= 0

    def next_eligible_date_after_failure(
        self, candidat: Candidat, exam_date: datetime
    ) -> datetime:
        """End of the exam day plus the retry timeout, never earlier than the stored restriction."""
        if exam_date is None:
            raise ValueError("Il manque la date de passage")
        if candidat is None:
            raise ValueError("Il manque le candidat")

        new_can_book_from = plus_days(end_of_day(exam_date), self.rules.timeout_to_retry)
        if candidat.can_book_from is not None:
            previous = to_civil(candidat.can_book_from)
            if previous > new_can_book_from:
                return previous
        return new_can_book_from

    def etg_expiry_cutoff(self, candidat: Candidat) -> datetime | None:
        if candidat.date_reussite_etg is None:
            return None
        return end_of_day(
            plus_years(to_civil(candidat.date_reussite_etg), self.rules.nb_years_etg_expired)
        )

    def visible_date_window(
        self,
        requested_begin: datetime | None,
        requested_end: datetime | None,
        *,
        candidat: Candidat,
        now: datetime,
    ) -> DateWindow:
        """Clamp a requested listing range to what the candidate may see.

        Raises ``EtgExpiredError`` when the theory test expires before the
        first bookable date.
        """
        earliest = self.earliest_bookable_date(candidat, now)
        begin = earliest
        if requested_begin is not None and requested_begin >= earliest:
            begin = to_civil(requested_begin)

        cutoff = self.etg_expiry_cutoff(candidat)
        if cutoff is not None and cutoff < begin:
            raise EtgExpiredError(cutoff)

        visible_until = plus_months(to_civil(now), self.rules.number_of_visible_months)
        if cutoff is not None and cutoff <= visible_until:
            visible_until = cutoff

        end = visible_until
        if requested_end is not None and requested_end <= visible_until:
            end = to_civil(requested_end)

        return DateWindow(begin=begin, end=end_of_day(end))

    def booking_gate(
        self,
        candidat: Candidat,
        requested_date: datetime,
        now: datetime,
        held_place_date: datetime | None = None,
    ) -> datetime | None:
        """Return the date the candidate must book after, or ``None`` when allowed.

        The requested date must be strictly after the earliest bookable date.
        A candidate already holding a place inside its penalty window is
        further held back to the restriction cancelling that place would
        trigger.
        """
        requested = to_civil(requested_date)
        date_authorized = self.earliest_bookable_date(candidat, now)
        is_authorized = requested > date_authorized

        if (
            is_authorized
            and held_place_date is not None
            and not self.can_cancel_without_penalty(held_place_date, now)
        ):
            date_authorized = self.next_eligible_date_after_failure(candidat, held_place_date)
            is_authorized = requested > date_authorized

        return None if is_authorized else date_authorized
