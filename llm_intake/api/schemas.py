# Schémas Pydantic propres à l'API (les modèles du domaine sont exposés tels quels).

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Réponse de `/health`.

    Champs:
    - status: "ok" si l'application répond
    - app: nom de l'application
    - env: environnement courant (dev, test, prod...)
    """

    status: str
    app: str
    env: str


class StepsResponse(BaseModel):
    steps: list[str]


class SubmitResponse(BaseModel):
    """Accusé de réception d'un dépôt accepté.

    Champs:
    - ref: référence `PREFIX-YYYYMMDD-HHMMSS-XXXX`
    - at: horodatage ISO du dépôt
    - at_display: horodatage lisible `jj.mm.aaaa HH:MM`
    """

    ref: str
    at: datetime
    at_display: str


class ErrorResponse(BaseModel):
    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None
