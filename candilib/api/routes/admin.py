from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from candilib.api.deps import get_booking_rules, get_db_session, require_roles
from candilib.api.schemas.candidats import CandidatExamStatusResponse, PracticalFailureRequest
from candilib.core.clock import to_civil
from candilib.domain import User
from candilib.domain.services.candidats import CandidatService
from candilib.domain.services.eligibility import BookingRules
from candilib.domain.services.reservations import CandidatNotFoundError

logger = structlog.get_logger()
router = APIRouter(prefix="/admin", tags=["Administration"])


@router.post("/candidats/{candidat_id}/echecs", response_model=CandidatExamStatusResponse)
async def record_practical_failure(
    candidat_id: str,
    payload: PracticalFailureRequest,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_roles(["repartiteur", "delegue", "admin"])),
    rules: BookingRules = Depends(get_booking_rules),
) -> CandidatExamStatusResponse:
    """Record a failed practical exam; the candidate may book again after the retry timeout."""
    service = CandidatService(session, rules=rules)
    try:
        candidat = await service.record_practical_failure(candidat_id, payload.date_examen)
    except CandidatNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    logger.info("admin_practical_failure", admin_id=user.user_id, candidat_id=candidat_id)
    return CandidatExamStatusResponse(
        id=candidat.id,
        code_neph=candidat.code_neph,
        nom_naissance=candidat.nom_naissance,
        nb_echecs_pratiques=candidat.nb_echecs_pratiques,
        date_dernier_echec_pratique=(
            to_civil(candidat.date_dernier_echec_pratique)
            if candidat.date_dernier_echec_pratique
            else None
        ),
        can_book_from=to_civil(candidat.can_book_from) if candidat.can_book_from else None,
    )
