"""
Booking convocation and cancellation emails.
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

import structlog
from candilib.core.clock import format_french_date, format_french_time
from candilib.core.config import get_settings
from candilib.libs.mail_client import MailClient, MailClientError, MailClientProtocol, MailResponse

if TYPE_CHECKING:
    from candilib.infrastructure.db.models import Candidat, Place

logger = structlog.get_logger(__name__)

SUBJECT_CONVOCATION = "Convocation à l'examen pratique du permis de conduire"
SUBJECT_CANCEL_BOOKING = "Annulation de votre réservation à l'examen pratique"


class NotificationError(Exception):
    """Raised when an email could not be delivered."""


class NotificationService:
    """Sends the emails tied to a reservation through the mail gateway."""

    def __init__(self, client: MailClientProtocol | None = None) -> None:
        self.client = client or MailClient()
        self.settings = get_settings()

    async def send_booking_confirmation(self, place: Place) -> MailResponse:
        candidat = place.candidat
        if candidat is None:
            raise NotificationError("La place n'est réservée par aucun candidat")

        text_body, html_body = self._build_convocation(candidat, place)
        return await self._send(candidat, SUBJECT_CONVOCATION, text_body, html_body)

    async def send_cancellation_notice(self, candidat: Candidat, place: Place) -> MailResponse:
        text_body, html_body = self._build_cancellation(candidat, place)
        return await self._send(candidat, SUBJECT_CANCEL_BOOKING, text_body, html_body)

    async def _send(
        self, candidat: Candidat, subject: str, text_body: str, html_body: str
    ) -> MailResponse:
        if not candidat.email:
            raise NotificationError(f"Le candidat {candidat.code_neph} n'a pas d'adresse courriel")

        try:
            response = await self.client.send_email(
                from_email=self.settings.mail_from_email,
                to_emails=[candidat.email],
                subject=subject,
                html=html_body,
                text=text_body,
            )
        except MailClientError as exc:
            raise NotificationError(f"Échec de l'envoi du courriel : {exc}") from exc

        await logger.ainfo(
            "mail_sent",
            candidat_id=candidat.id,
            subject=subject,
            message_id=response.id,
        )
        return response

    def _build_convocation(self, candidat: Candidat, place: Place) -> tuple[str, str]:
        centre = place.centre
        day = format_french_date(place.date)
        hour = format_french_time(place.date)
        greeting = _greeting(candidat)

        text_lines = [
            greeting,
            "",
            "Vous êtes convoqué(e) à l'examen pratique du permis de conduire :",
            "",
            f"Centre : {centre.label} ({centre.departement})",
            f"Adresse : {centre.adresse}",
            f"Date : le {day} à {hour}",
            f"NEPH : {candidat.code_neph}",
            "",
            "Présentez-vous avec une pièce d'identité en cours de validité,",
            "accompagné(e) d'un véhicule à double commande.",
            "",
            "L'équipe Candilib",
        ]
        html_body = (
            f"<p>{escape(greeting)}</p>"
            "<p>Vous êtes convoqué(e) à l'examen pratique du permis de conduire :</p>"
            "<ul>"
            f"<li>Centre : {escape(centre.label)} ({escape(centre.departement)})</li>"
            f"<li>Adresse : {escape(centre.adresse)}</li>"
            f"<li>Date : le {escape(day)} à {escape(hour)}</li>"
            f"<li>NEPH : {escape(candidat.code_neph)}</li>"
            "</ul>"
            "<p>Présentez-vous avec une pièce d'identité en cours de validité, "
            "accompagné(e) d'un véhicule à double commande.</p>"
            "<p>L'équipe Candilib</p>"
        )
        return "\n".join(text_lines), html_body

    def _build_cancellation(self, candidat: Candidat, place: Place) -> tuple[str, str]:
        centre = place.centre
        day = format_french_date(place.date)
        hour = format_french_time(place.date)
        greeting = _greeting(candidat)

        text_lines = [
            greeting,
            "",
            f"Votre réservation du {day} à {hour} au centre {centre.label} a bien été annulée.",
            "",
            "L'équipe Candilib",
        ]
        html_body = (
            f"<p>{escape(greeting)}</p>"
            f"<p>Votre réservation du {escape(day)} à {escape(hour)} au centre "
            f"{escape(centre.label)} a bien été annulée.</p>"
            "<p>L'équipe Candilib</p>"
        )
        return "\n".join(text_lines), html_body


def _greeting(candidat: Candidat) -> str:
    name = " ".join(part for part in (candidat.prenom, candidat.nom_naissance) if part)
    return f"Bonjour {name}," if name else "Bonjour,"
