"""
Endpoint de santé pour vérifier la disponibilité de l'API.
"""

from fastapi import APIRouter

from llm_intake.api.schemas import HealthResponse
from llm_intake.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health():
    """Vérifie la disponibilité de l'API."""
    return {
        "status": "ok",
        "app": container.settings.APP_NAME,
        "env": container.settings.APP_ENV,
    }
