from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UTCDateTime


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ArchiveReason(str, enum.Enum):
    """Why a booked place left a candidate's hands."""

    CANCELLED = "cancelled"
    MODIFIED = "modified"


class Centre(Base):
    """Exam centre reference data."""

    __tablename__ = "centres"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    nom: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    adresse: Mapped[str] = mapped_column(String(255), nullable=False)
    departement: Mapped[str] = mapped_column(String(8), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Centre(id={self.id}, nom={self.nom}, departement={self.departement})>"


class Candidat(Base):
    """Candidate and their exam eligibility state."""

    __tablename__ = "candidats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    code_neph: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    nom_naissance: Mapped[str] = mapped_column(String(128), nullable=False)
    prenom: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    portable: Mapped[str | None] = mapped_column(String(32), nullable=True)
    departement: Mapped[str | None] = mapped_column(String(8), nullable=True)
    home_departement: Mapped[str | None] = mapped_column(String(8), nullable=True)
    date_reussite_etg: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    date_dernier_echec_pratique: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    nb_echecs_pratiques: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Earliest date the candidate may book; only ever moves later
    can_book_from: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=_utcnow, nullable=False
    )

    archived_places: Mapped[list[ArchivedPlace]] = relationship(
        back_populates="candidat",
        cascade="all,delete",
        order_by="ArchivedPlace.archived_at",
    )

    def __repr__(self) -> str:
        return f"<Candidat(id={self.id}, nom_naissance={self.nom_naissance}, neph={self.code_neph})>"


class Place(Base):
    """A bookable exam slot: one centre at one exact date-time."""

    __tablename__ = "places"
    __table_args__ = (Index("ix_places_centre_date", "centre_id", "date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    centre_id: Mapped[str] = mapped_column(
        ForeignKey("centres.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    inspecteur: Mapped[str | None] = mapped_column(String(64), nullable=True)
    booked_by: Mapped[str | None] = mapped_column(
        ForeignKey("candidats.id", ondelete="SET NULL"), nullable=True, index=True
    )
    booked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    centre: Mapped[Centre] = relationship()
    candidat: Mapped[Candidat | None] = relationship()

    def __repr__(self) -> str:
        return f"<Place(id={self.id}, centre_id={self.centre_id}, date={self.date})>"


class ArchivedPlace(Base):
    """Audit entry written when a booked place is released."""

    __tablename__ = "archived_places"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    candidat_id: Mapped[str] = mapped_column(
        ForeignKey("candidats.id", ondelete="CASCADE"), nullable=False, index=True
    )
    place_id: Mapped[str] = mapped_column(String(36), nullable=False)
    centre_id: Mapped[str] = mapped_column(String(36), nullable=False)
    date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    inspecteur: Mapped[str | None] = mapped_column(String(64), nullable=True)
    booked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    archived_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    archive_reason: Mapped[ArchiveReason] = mapped_column(
        Enum(
            ArchiveReason,
            name="archive_reason",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
    )

    candidat: Mapped[Candidat] = relationship(back_populates="archived_places")
