from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReservationCreateRequest(CamelModel):
    """Fields are optional so missing ones can be reported together, in French."""

    centre_id: str | None = Field(None, alias="id", description="Exam centre identifier")
    date: str | None = Field(None, description="ISO date-time of the requested slot")
    is_accompanied: bool | None = Field(
        None, description="Candidate certifies being accompanied"
    )
    has_dual_control_car: bool | None = Field(
        None, description="Candidate certifies having a dual-control car"
    )


class CentreItem(CamelModel):
    id: str
    nom: str
    label: str
    adresse: str
    departement: str


class ReservationResponse(CamelModel):
    place_id: str
    date: datetime
    centre: CentreItem
    last_date_to_cancel: datetime
    can_book_from: datetime | None = None
    date_dernier_echec_pratique: datetime | None = None
    time_out_to_retry: int
    day_to_forbid_cancel: int


class ReservationSummary(CamelModel):
    date: datetime
    centre: str
    departement: str
    is_booked: bool


class ReservationCreateResponse(CamelModel):
    success: bool
    message: str
    reservation: ReservationSummary | None = None
    statusmail: bool | None = None
    reason: str | None = None
    can_book_after: datetime | None = Field(
        None, description="Date the candidate must book after, when booking is too early"
    )
    date_after_book: date | None = Field(
        None, description="Penalty date set by replacing a previous reservation"
    )


class ReservationCancelResponse(CamelModel):
    success: bool = True
    statusmail: bool
    message: str
    date_after_book: date | None = None
