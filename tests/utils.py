from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession
from candilib.api.deps import issue_smoke_token
from candilib.core.auth import Role
from candilib.domain.services.notifications import NotificationError
from candilib.infrastructure.db.models import Candidat, Centre, Place

PARIS = ZoneInfo("Europe/Paris")


def paris(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    microsecond: int = 0,
) -> datetime:
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=PARIS)


NOW = paris(2024, 6, 1, 10)


def auth_headers(user_id: str = "candidat-1", role: Role = Role.CANDIDAT) -> dict[str, str]:
    token = issue_smoke_token(user_id, role=role, departements=["93"])
    return {"Authorization": f"Bearer {token}"}


class FakeNotifier:
    """Records the emails the services ask for; ``fail`` makes every send raise."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.bookings: list[str] = []
        self.cancellations: list[str] = []

    async def send_booking_confirmation(self, place: Place) -> None:
        if self.fail:
            raise NotificationError("mail gateway down")
        self.bookings.append(place.id)

    async def send_cancellation_notice(self, candidat: Candidat, place: Place) -> None:
        if self.fail:
            raise NotificationError("mail gateway down")
        self.cancellations.append(place.id)


async def create_centre(session: AsyncSession, **overrides: Any) -> Centre:
    data = {
        "nom": "Rosny-sous-Bois",
        "label": "Centre d'examen de Rosny-sous-Bois",
        "adresse": "avenue du Général de Gaulle, 93110 Rosny-sous-Bois",
        "departement": "93",
    }
    data.update(overrides)
    centre = Centre(**data)
    session.add(centre)
    await session.flush()
    return centre


async def create_candidat(session: AsyncSession, **overrides: Any) -> Candidat:
    data = {
        "code_neph": "093496239512",
        "nom_naissance": "DUPONT",
        "prenom": "Jeanne",
        "email": "jeanne.dupont@example.com",
        "departement": "93",
        "date_reussite_etg": paris(2022, 1, 10),
    }
    data.update(overrides)
    candidat = Candidat(**data)
    session.add(candidat)
    await session.flush()
    return candidat


async def create_place(
    session: AsyncSession,
    centre: Centre,
    date: datetime,
    *,
    booked_by: Candidat | None = None,
    booked_at: datetime | None = None,
) -> Place:
    place = Place(
        centre_id=centre.id,
        date=date,
        inspecteur="inspecteur-1",
        booked_by=booked_by.id if booked_by else None,
        booked_at=(booked_at or NOW) if booked_by else None,
    )
    session.add(place)
    await session.flush()
    return place
