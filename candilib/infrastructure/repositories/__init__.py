"""Repositories over the booking database."""

from candilib.infrastructure.repositories.candidats import CandidatRepository
from candilib.infrastructure.repositories.centres import CentreRepository
from candilib.infrastructure.repositories.places import PlaceRepository
from candilib.infrastructure.repositories.unit_of_work import UnitOfWork

__all__ = ["CandidatRepository", "CentreRepository", "PlaceRepository", "UnitOfWork"]
