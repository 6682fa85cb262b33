"""Exceptions métier levées par le service de dépôt."""

from __future__ import annotations

from llm_intake.domain.models import Suggestion


class IntakeError(Exception):
    """Base des erreurs du service."""


class UnknownStepError(IntakeError):
    """Validation demandée pour une étape inexistante."""

    def __init__(self, step: str, known: list[str]) -> None:
        super().__init__(f"Étape inconnue: {step}")
        self.step = step
        self.known = known


class SubmissionRefusedError(IntakeError):
    """Dépôt tenté alors que le contrôle final a produit au moins un refus."""

    def __init__(self, refusals: list[str], suggestions: list[Suggestion]) -> None:
        super().__init__("Demande refusée")
        self.refusals = refusals
        self.suggestions = suggestions
