"""
Composition du ménage et barème des pièces.

Objectif du module
------------------
- Répartir les membres en adultes / enfants à charge / exclus (permis, enfant à naître sans
  certificat) à partir de la validité des permis.
- Calculer le nombre maximal de pièces autorisé selon le barème communal (demi-pièces).
- Déterminer l'exigence de décision de taxation du preneur.

Seuils retenus
--------------
- Adulte: 18 ans révolus (ou titulaire sans date de naissance).
- Enfant à charge pour le barème: moins de 18 ans, ou enfant à naître avec certificat.
- Jeune preneur (1,5 pièce s'il vit seul): moins de 25 ans.
"""

from __future__ import annotations

import math
from datetime import date

from llm_intake.domain.dates import age
from llm_intake.domain.entities import Application, Member
from llm_intake.domain.models import Classification, HouseholdSummary, TaxDecision
from llm_intake.domain.permits import is_permit_valid

ADULT_AGE = 18
YOUNG_TENANT_AGE = 25
DEFAULT_ROOMS = 2.5

# (adultes, enfants) -> pièces; les enfants sont plafonnés à 3 pour la lecture
ROOM_SCALE: dict[tuple[int, int], float] = {
    (1, 1): 3.5,
    (1, 2): 4.5,
    (1, 3): 5.5,
    (2, 0): 3.5,
    (2, 1): 3.5,
    (2, 2): 4.5,
    (2, 3): 5.5,
}


def is_adult(member: Member, today: date | None = None) -> bool:
    """Adulte si 18 ans révolus; sans date de naissance, seul un titulaire est présumé majeur."""
    if member.is_unborn:
        return False
    years = age(member.birth_date, today)
    if years is None:
        return member.is_tenant
    return years >= ADULT_AGE


def classify(members: list[Member], today: date | None = None) -> Classification:
    """Répartit les membres selon les règles de comptage du ménage.

    Un membre exclu pour permis invalide n'est compté ni comme adulte ni comme enfant. Un enfant
    à naître n'est compté que si un certificat de grossesse est joint; il n'est pas soumis à la
    règle des permis.
    """
    result = Classification()
    for m in members:
        if m.is_unborn:
            if m.pregnancy.certificate:
                result.dependent_children.append(m)
            else:
                result.excluded_unborn.append(m)
            continue
        if not is_permit_valid(m, today):
            result.excluded_by_permit.append(m)
            continue
        years = age(m.birth_date, today)
        if years is None:
            if m.is_tenant:
                result.adults.append(m)
            else:
                result.unknown_age.append(m)
        elif years >= ADULT_AGE:
            result.adults.append(m)
        else:
            result.dependent_children.append(m)
    return result


def tenants(members: list[Member]) -> list[Member]:
    return [m for m in members if m.is_tenant]


def is_solo_male_applicant(members: list[Member]) -> bool:
    """Homme seul: un unique titulaire, de genre masculin, non marié."""
    holders = tenants(members)
    if len(holders) != 1:
        return False
    holder = holders[0]
    return holder.gender == "Homme" and holder.civil_status != "Marié·e"


def unsupported_children(members: list[Member]) -> list[Member]:
    """Enfants d'un homme seul sans situation de garde ou sans justificatif parental."""
    if not is_solo_male_applicant(members):
        return []
    return [
        m
        for m in members
        if m.role == "enfant" and (m.custody is None or not m.documents.parental)
    ]


def is_young_tenant(members: list[Member], today: date | None = None) -> bool:
    preneur = next((m for m in members if m.role == "preneur"), None)
    if preneur is None:
        return False
    years = age(preneur.birth_date, today)
    return years is not None and years < YOUNG_TENANT_AGE


def room_scale(adults: int, children: int, young_tenant: bool = False) -> float:
    """Lecture du barème (adultes × enfants); 2,5 pièces hors barème."""
    if adults == 1 and children == 0:
        return 1.5 if young_tenant else 2.5
    return ROOM_SCALE.get((adults, min(children, 3)), DEFAULT_ROOMS)


def effective_children(members: list[Member], today: date | None = None) -> tuple[int, int]:
    """Retourne (adultes, enfants retenus pour le barème).

    Les enfants en droit de visite ne résident pas dans le logement; deux enfants ou plus en droit
    de visite, ou un enfant en garde partagée, garantissent toutefois un enfant au barème.
    """
    classification = classify(members, today)
    excluded = {m.id for m in unsupported_children(members)}
    children = [c for c in classification.dependent_children if c.id not in excluded]

    visiting = [c for c in children if c.role == "enfant" and c.custody == "droit_de_visite"]
    shared = any(c.role == "enfant" and c.custody == "garde_partagee" for c in children)

    resident = len(children) - len(visiting)
    if len(visiting) >= 2 or shared:
        resident = max(resident, 1)
    return len(classification.adults), resident


def max_rooms(members: list[Member], today: date | None = None) -> float:
    """Nombre maximal de pièces autorisé pour le ménage (1,5 à 5,5)."""
    adults, children = effective_children(members, today)
    return room_scale(adults, children, is_young_tenant(members, today))


def _normalize(text: str | None) -> str:
    return " ".join((text or "").lower().split())


def requires_tax_decision(member: Member | None) -> TaxDecision:
    """Exigence d'une décision de taxation pour un membre.

    - Permis B/F: jamais demandée.
    - Suisse ou permis C: exigée hors canton de Vaud, facultative dans le canton hors Lausanne,
      inutile à Lausanne.
    - Autres situations: non demandée.
    """
    if member is None:
        return "none"
    if member.permit.type in ("Permis B", "Permis F"):
        return "none"
    if not (member.is_swiss or member.permit.type == "Permis C"):
        return "none"
    address = member.address
    if address.kind == "etranger":
        return "required"
    canton = _normalize(address.canton)
    if not canton:
        return "optional"
    if canton not in ("vaud", "vd"):
        return "required"
    if _normalize(address.commune) == "lausanne":
        return "none"
    return "optional"


def _declared_rooms(rooms: float | str | None) -> float | str | None:
    # NaN et infini ne sont pas sérialisables en JSON
    if isinstance(rooms, float) and not math.isfinite(rooms):
        return None
    return rooms


def household_summary(application: Application, today: date | None = None) -> HouseholdSummary:
    """Synthèse du ménage recalculée à chaque changement de l'instantané."""
    members = application.members
    classification = classify(members, today)
    unsupported = {m.id for m in unsupported_children(members)}
    counted = [c for c in classification.dependent_children if c.id not in unsupported]
    excluded_children = len(classification.excluded_unborn) + (
        len(classification.dependent_children) - len(counted)
    )
    return HouseholdSummary(
        application_type=application.application_type,
        adults=len(classification.adults),
        children=len(counted),
        excluded_children=excluded_children,
        excluded_by_permit=len(classification.excluded_by_permit),
        declared_rooms=_declared_rooms(application.housing.rooms),
        max_rooms=max_rooms(members, today),
        tax_decision=requires_tax_decision(application.primary_tenant()),
    )
