from __future__ import annotations

from datetime import datetime

from pydantic import Field
from candilib.api.schemas.reservations import CamelModel


class PracticalFailureRequest(CamelModel):
    date_examen: datetime = Field(..., description="Date-time of the failed practical exam")


class CandidatExamStatusResponse(CamelModel):
    id: str
    code_neph: str
    nom_naissance: str
    nb_echecs_pratiques: int
    date_dernier_echec_pratique: datetime | None = None
    can_book_from: datetime | None = None
