"""
Routes du récapitulatif et du dépôt de la demande.
"""

from fastapi import APIRouter

from llm_intake.api.schemas import ErrorResponse, SubmitResponse
from llm_intake.core.container import container
from llm_intake.domain.entities import Application
from llm_intake.domain.models import RecapReport

router = APIRouter(tags=["recap"])
service = container.intake


@router.post("/recap", response_model=RecapReport)
def recap(payload: Application):
    """
    Récapitulatif avant dépôt.

    Retour: synthèse du ménage, documents manquants ou différés, information « titres de
    séjour », refus et erreurs de champ, suggestions (si refus) et `can_submit`.
    """
    return service.recap(payload)


@router.post(
    "/submit",
    response_model=SubmitResponse,
    responses={422: {"model": ErrorResponse}},
)
def submit(payload: Application):
    """Dépose la demande; 422 `APPLICATION_REFUSED` si le contrôle final la refuse."""
    return service.submit(payload).model_dump()
