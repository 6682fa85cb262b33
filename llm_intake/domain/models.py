"""Modèles de résultat produits par le moteur de règles.

Objectif du module
------------------
- Définir les structures renvoyées par les validateurs d'étape, le classificateur du ménage,
  l'inventaire des documents manquants et le contrôle final avant dépôt.
- Ces modèles sont indépendants de l'API, qui les expose tels quels.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from llm_intake.domain.entities import FinanceSource, Member

TaxDecision = Literal["required", "optional", "none"]


class Suggestion(BaseModel):
    """Programme de logement alternatif proposé au demandeur non éligible."""

    title: str
    href: str
    desc: str


class ValidationResult(BaseModel):
    """Résultat d'un validateur d'étape.

    - blocking: messages qui empêchent d'avancer (ordre d'apparition conservé)
    - warnings: informations non bloquantes
    - invalid_fields: chemins des champs à surligner (ex: `members[0].birth_date`)
    - valid: vrai si aucun message bloquant
    - suggestions: programmes alternatifs (pré-filtrage non éligible)
    """

    blocking: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    invalid_fields: list[str] = Field(default_factory=list)
    valid: bool = True
    suggestions: list[Suggestion] = Field(default_factory=list)


class Classification(BaseModel):
    """Partition des membres du ménage (les exclus restent visibles dans la demande)."""

    adults: list[Member] = Field(default_factory=list)
    dependent_children: list[Member] = Field(default_factory=list)
    excluded_by_permit: list[Member] = Field(default_factory=list)
    excluded_unborn: list[Member] = Field(default_factory=list)
    unknown_age: list[Member] = Field(default_factory=list)


class HouseholdSummary(BaseModel):
    application_type: str | None = None
    adults: int = 0
    children: int = 0
    excluded_children: int = 0
    excluded_by_permit: int = 0
    declared_rooms: float | str | None = None
    max_rooms: float = 2.5
    tax_decision: TaxDecision = "none"


class DeferredDocument(BaseModel):
    """Document signalé « Joindre plus tard », à réclamer après le dépôt."""

    id: str
    member_id: str
    member_name: str
    category: str
    category_label: str
    field_path: str
    label: str


class PermitNotice(BaseModel):
    notice: str
    lines: list[str] = Field(default_factory=list)


class MissingDocsReport(BaseModel):
    warnings: list[str] = Field(default_factory=list)
    deferred: list[DeferredDocument] = Field(default_factory=list)
    blocking: list[str] = Field(default_factory=list)
    permit_notice: PermitNotice | None = None


class CriticalResult(BaseModel):
    """Refus bloquants et erreurs de champ (ces dernières ne bloquent pas le dépôt)."""

    refusals: list[str] = Field(default_factory=list)
    field_errors: list[str] = Field(default_factory=list)

    @property
    def submission_allowed(self) -> bool:
        return not self.refusals


class MissingFinanceDocs(BaseModel):
    """Entrée de revenu sans justificatif, avec la liste des pièces attendues."""

    member_id: str
    member_name: str
    source: FinanceSource
    source_label: str
    required: list[str] = Field(default_factory=list)


class Reference(BaseModel):
    ref: str
    at: datetime
    at_display: str


class RecapReport(BaseModel):
    household: HouseholdSummary
    missing_docs: MissingDocsReport
    critical: CriticalResult
    suggestions: list[Suggestion] = Field(default_factory=list)
    can_submit: bool = False
