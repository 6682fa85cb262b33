"""Contrôle final avant dépôt: refus bloquants et erreurs de champ.

Les refus sont évalués une seule fois, sur l'instantané complet, à l'écran récapitulatif. Un refus
empêche le dépôt; une erreur de champ est signalée sans bloquer.
"""

from __future__ import annotations

from datetime import date

from llm_intake.domain.catalog import NO_INCOME, source_label
from llm_intake.domain.dates import age
from llm_intake.domain.entities import Application
from llm_intake.domain.household import ADULT_AGE, classify
from llm_intake.domain.models import CriticalResult
from llm_intake.domain.permits import is_permit_valid
from llm_intake.domain.validators import parse_amount, parse_rooms, sources_by_member

REFUSAL_MINOR_TENANT = "Preneur·euse < 18 ans sans document d’émancipation."
REFUSAL_INVALID_PERMIT = "Permis du preneur·euse invalide."
REFUSAL_NO_INCOME_DATA = "Aucune source de revenu déclarée pour les adultes du ménage."
REFUSAL_ALL_NO_INCOME = "Tous les adultes sont sans revenu déclaré."

AI_DEGREE_MIN = 1
AI_DEGREE_MAX = 100


def _field_errors(application: Application) -> list[str]:
    errors: list[str] = []
    seen: set[tuple[str, str]] = set()
    for idx, entry in enumerate(application.finances):
        member = application.member_by_id(entry.member_id)
        if member is None:
            errors.append(f"Entrée de revenu n°{idx + 1} : membre inconnu.")
            continue
        name = member.display_name or "Personne"
        label = source_label(entry.source)
        pair = (entry.member_id, entry.source)
        if pair in seen:
            errors.append(f"{name} — {label} : source déclarée plusieurs fois.")
        seen.add(pair)
        if entry.source == "ai":
            degree = entry.disability_degree
            if (
                degree is None
                or not float(degree).is_integer()
                or not AI_DEGREE_MIN <= degree <= AI_DEGREE_MAX
            ):
                errors.append(
                    f"{name} — {label} : le degré d’invalidité doit être un entier entre 1 et 100."
                )

    housing = application.housing
    if housing.rooms not in (None, "") and parse_rooms(housing.rooms) is None:
        errors.append("Nombre de pièces : format invalide.")
    rent = parse_amount(housing.monthly_rent)
    if housing.monthly_rent is not None and rent is None:
        errors.append("Loyer mensuel : valeur invalide.")
    elif rent is not None and rent < 0:
        errors.append("Loyer mensuel : valeur négative.")
    return errors


def run_critical_validations(application: Application, today: date | None = None) -> CriticalResult:
    """Dernier contrôle avant dépôt.

    Refus:
    - preneur·euse mineur·e sans document d'émancipation;
    - permis du preneur·euse invalide;
    - parmi les adultes au permis valide: aucune source déclarée, ou uniquement « sans revenu »
      pour chacun d'eux.
    """
    refusals: list[str] = []
    preneur = application.primary_tenant()
    if preneur is not None:
        years = age(preneur.birth_date, today)
        if years is not None and years < ADULT_AGE and not preneur.documents.emancipation:
            refusals.append(REFUSAL_MINOR_TENANT)
        if not is_permit_valid(preneur, today):
            refusals.append(REFUSAL_INVALID_PERMIT)

    adults = classify(application.members, today).adults
    if adults:
        declared = sources_by_member(application)
        per_adult = [declared.get(a.id, []) for a in adults]
        if not any(per_adult):
            refusals.append(REFUSAL_NO_INCOME_DATA)
        elif all(set(sources) == {NO_INCOME} for sources in per_adult):
            refusals.append(REFUSAL_ALL_NO_INCOME)

    return CriticalResult(refusals=refusals, field_errors=_field_errors(application))

