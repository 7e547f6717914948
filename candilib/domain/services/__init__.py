"""Domain services."""

from candilib.domain.services.availability import AvailabilityService, CentreNotFoundError
from candilib.domain.services.candidats import CandidatService
from candilib.domain.services.eligibility import (
    BookingRules,
    DateWindow,
    EligibilityRules,
    EtgExpiredError,
)
from candilib.domain.services.notifications import NotificationError, NotificationService
from candilib.domain.services.reservations import (
    BookingOutcome,
    BookingRejection,
    CancellationResult,
    CandidatNotFoundError,
    NoReservationError,
    ReservationIntegrityError,
    ReservationService,
    ReservationView,
)

__all__ = [
    "AvailabilityService",
    "BookingOutcome",
    "BookingRejection",
    "BookingRules",
    "CancellationResult",
    "CandidatNotFoundError",
    "CandidatService",
    "CentreNotFoundError",
    "DateWindow",
    "EligibilityRules",
    "EtgExpiredError",
    "NoReservationError",
    "NotificationError",
    "NotificationService",
    "ReservationIntegrityError",
    "ReservationService",
    "ReservationView",
]
