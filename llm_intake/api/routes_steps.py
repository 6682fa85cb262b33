"""
Routes de validation du formulaire, étape par étape, et synthèse du ménage.

Chaque appel reçoit l'instantané complet de la demande; l'API ne conserve rien entre deux appels.
"""

from fastapi import APIRouter

from llm_intake.api.schemas import ErrorResponse, StepsResponse
from llm_intake.core.container import container
from llm_intake.domain.entities import Application
from llm_intake.domain.models import HouseholdSummary, ValidationResult

router = APIRouter(tags=["steps"])
service = container.intake


@router.get("/steps", response_model=StepsResponse)
def list_steps():
    """Liste les étapes validables, dans l'ordre du formulaire."""
    return {"steps": service.steps}


@router.post(
    "/steps/{step}/validate",
    response_model=ValidationResult,
    responses={404: {"model": ErrorResponse}},
)
def validate_step(step: str, payload: Application):
    """
    Valide une étape sur l'instantané fourni.

    Retour: `ValidationResult` (messages bloquants, avertissements, champs à surligner).
    Une étape inconnue produit une 404 `UNKNOWN_STEP`.
    """
    return service.validate_step(step, payload)


@router.post("/household/summary", response_model=HouseholdSummary)
def summary(payload: Application):
    """Composition retenue du ménage, nombre maximal de pièces et exigence de taxation."""
    return service.household_summary(payload)
