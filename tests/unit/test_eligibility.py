"""Tests for the booking and cancellation date rules."""

from __future__ import annotations

import pytest
from candilib.core.config import Settings
from candilib.domain.services.eligibility import BookingRules, EligibilityRules, EtgExpiredError
from candilib.infrastructure.db.models import Candidat
from tests.utils import NOW, paris


def _candidat(**fields) -> Candidat:
    return Candidat(code_neph="093496239512", nom_naissance="DUPONT", **fields)


@pytest.fixture()
def eligibility() -> EligibilityRules:
    return EligibilityRules(BookingRules())


class TestBookingRules:
    def test_rules_are_read_from_settings(self) -> None:
        settings = Settings(DELAY_TO_BOOK=3, DAYS_FORBID_CANCEL=2, TIMEOUT_TO_RETRY=30)

        rules = BookingRules.from_settings(settings)

        assert rules.delay_to_book == 3
        assert rules.days_forbid_cancel == 2
        assert rules.timeout_to_retry == 30
        assert rules.number_of_visible_months == 3


class TestEarliestBookableDate:
    def test_without_delay_is_end_of_today(self, eligibility: EligibilityRules) -> None:
        assert eligibility.earliest_bookable_date(_candidat(), NOW) == paris(
            2024, 6, 1, 23, 59, 59, 999999
        )

    def test_delay_counts_from_start_of_today(self) -> None:
        eligibility = EligibilityRules(BookingRules(delay_to_book=3))

        assert eligibility.earliest_bookable_date(_candidat(), NOW) == paris(2024, 6, 4)

    def test_later_restriction_wins(self, eligibility: EligibilityRules) -> None:
        candidat = _candidat(can_book_from=paris(2024, 6, 15, 23, 59, 59, 999999))

        assert eligibility.earliest_bookable_date(candidat, NOW) == candidat.can_book_from

    def test_past_restriction_is_ignored(self, eligibility: EligibilityRules) -> None:
        candidat = _candidat(can_book_from=paris(2024, 5, 1))

        assert eligibility.earliest_bookable_date(candidat, NOW) == paris(
            2024, 6, 1, 23, 59, 59, 999999
        )


class TestCancellation:
    def test_last_penalty_free_date(self, eligibility: EligibilityRules) -> None:
        assert eligibility.last_penalty_free_cancel_date(paris(2024, 6, 10, 9)) == paris(
            2024, 6, 3
        )

    def test_cancel_before_last_date_is_free(self, eligibility: EligibilityRules) -> None:
        assert eligibility.can_cancel_without_penalty(paris(2024, 6, 10, 9), NOW) is True

    def test_cancel_on_last_date_is_still_free(self) -> None:
        eligibility = EligibilityRules(BookingRules(days_forbid_cancel=2))

        assert eligibility.can_cancel_without_penalty(
            paris(2024, 6, 10, 9), paris(2024, 6, 8, 10)
        )

    def test_cancel_after_last_date_is_penalised(self) -> None:
        eligibility = EligibilityRules(BookingRules(days_forbid_cancel=2))

        assert not eligibility.can_cancel_without_penalty(
            paris(2024, 6, 10, 9), paris(2024, 6, 9, 10)
        )

    def test_late_cancellation_restriction(self) -> None:
        eligibility = EligibilityRules(BookingRules(days_forbid_cancel=2, timeout_to_retry=45))

        can_book_from = eligibility.next_eligible_date_after_failure(
            _candidat(), paris(2024, 6, 10, 9)
        )

        assert can_book_from == paris(2024, 7, 25, 23, 59, 59, 999999)

    def test_restriction_never_moves_earlier(self, eligibility: EligibilityRules) -> None:
        later = paris(2024, 12, 1, 23, 59, 59, 999999)
        candidat = _candidat(can_book_from=later)

        assert eligibility.next_eligible_date_after_failure(candidat, paris(2024, 6, 10, 9)) == later

    def test_missing_exam_date_is_rejected(self, eligibility: EligibilityRules) -> None:
        with pytest.raises(ValueError):
            eligibility.next_eligible_date_after_failure(_candidat(), None)


class TestBookingGate:
    def test_tomorrow_is_bookable_without_delay(self, eligibility: EligibilityRules) -> None:
        assert eligibility.booking_gate(_candidat(), paris(2024, 6, 2, 9), NOW) is None

    def test_today_is_not_bookable(self, eligibility: EligibilityRules) -> None:
        assert eligibility.booking_gate(_candidat(), paris(2024, 6, 1, 15), NOW) == paris(
            2024, 6, 1, 23, 59, 59, 999999
        )

    def test_request_equal_to_restriction_is_refused(self, eligibility: EligibilityRules) -> None:
        candidat = _candidat(can_book_from=paris(2024, 6, 10, 9))

        assert eligibility.booking_gate(candidat, paris(2024, 6, 10, 9), NOW) == paris(
            2024, 6, 10, 9
        )
        assert eligibility.booking_gate(candidat, paris(2024, 6, 10, 10), NOW) is None

    def test_held_place_inside_penalty_window_delays_booking(self) -> None:
        eligibility = EligibilityRules(BookingRules(days_forbid_cancel=7, timeout_to_retry=45))
        now = paris(2024, 6, 8, 10)

        gate = eligibility.booking_gate(
            _candidat(),
            paris(2024, 6, 20, 9),
            now,
            held_place_date=paris(2024, 6, 10, 9),
        )

        assert gate == paris(2024, 7, 25, 23, 59, 59, 999999)

    def test_held_place_outside_penalty_window(self, eligibility: EligibilityRules) -> None:
        gate = eligibility.booking_gate(
            _candidat(),
            paris(2024, 6, 20, 9),
            NOW,
            held_place_date=paris(2024, 6, 10, 9),
        )

        assert gate is None


class TestVisibleWindow:
    def test_window_defaults(self, eligibility: EligibilityRules) -> None:
        window = eligibility.visible_date_window(None, None, candidat=_candidat(), now=NOW)

        assert window.begin == paris(2024, 6, 1, 23, 59, 59, 999999)
        assert window.end == paris(2024, 9, 1, 23, 59, 59, 999999)

    def test_requested_range_inside_window_is_kept(self, eligibility: EligibilityRules) -> None:
        window = eligibility.visible_date_window(
            paris(2024, 6, 10), paris(2024, 6, 20, 12), candidat=_candidat(), now=NOW
        )

        assert window.begin == paris(2024, 6, 10)
        assert window.end == paris(2024, 6, 20, 23, 59, 59, 999999)

    def test_requested_range_is_clamped(self, eligibility: EligibilityRules) -> None:
        window = eligibility.visible_date_window(
            paris(2024, 5, 1), paris(2025, 1, 1), candidat=_candidat(), now=NOW
        )

        assert window.begin == paris(2024, 6, 1, 23, 59, 59, 999999)
        assert window.end == paris(2024, 9, 1, 23, 59, 59, 999999)

    def test_theory_test_expiry_shortens_window(self, eligibility: EligibilityRules) -> None:
        candidat = _candidat(date_reussite_etg=paris(2019, 6, 15, 12))

        window = eligibility.visible_date_window(None, None, candidat=candidat, now=NOW)

        assert window.end == paris(2024, 6, 15, 23, 59, 59, 999999)

    def test_expired_theory_test_raises(self, eligibility: EligibilityRules) -> None:
        candidat = _candidat(date_reussite_etg=paris(2019, 5, 1))

        with pytest.raises(EtgExpiredError) as excinfo:
            eligibility.visible_date_window(None, None, candidat=candidat, now=NOW)

        assert excinfo.value.expiry == paris(2024, 5, 1, 23, 59, 59, 999999)
        assert "mercredi 1 mai 2024" in str(excinfo.value)

    def test_no_theory_test_date_means_no_cutoff(self, eligibility: EligibilityRules) -> None:
        assert eligibility.etg_expiry_cutoff(_candidat()) is None
