"""
Validateurs d'étape du formulaire LLM.

Chaque validateur est une fonction pure `(application, today) -> ValidationResult`: il lit
l'instantané, ne le modifie jamais et ne lève aucune exception. Une donnée illisible (date mal
formée, nombre invalide) est traitée comme absente.

L'interface les appelle à chaque modification et n'affiche les messages bloquants qu'après une
tentative de passage à l'étape suivante.
"""

from __future__ import annotations

import math
import re
from collections import defaultdict
from collections.abc import Callable
from datetime import date

from llm_intake.domain.catalog import (
    HOUSING_REASONS,
    JUDGMENT_CIVIL_STATUSES,
    NO_INCOME,
    build_refusal_suggestions,
    is_corel_commune,
    required_docs_for,
    source_label,
)
from llm_intake.domain.dates import age, is_past_date, parse_date
from llm_intake.domain.entities import Application, Member
from llm_intake.domain.household import ADULT_AGE, YOUNG_TENANT_AGE, classify, is_adult, tenants
from llm_intake.domain.models import MissingFinanceDocs, Suggestion, ValidationResult
from llm_intake.domain.permits import is_recognized_permit, requires_expiration

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ROOMS_RE = re.compile(r"^\s*(\d+)(?:[.,](\d))?\s*(?:pi[eè]ces?)?\s*$", re.IGNORECASE)


class _Issues:
    """Accumulateur de messages bloquants, d'avertissements et de champs invalides."""

    def __init__(self) -> None:
        self.blocking: list[str] = []
        self.warnings: list[str] = []
        self.fields: list[str] = []
        self.suggestions: list[Suggestion] = []

    def block(self, message: str, *paths: str) -> None:
        self.blocking.append(message)
        for path in paths:
            if path not in self.fields:
                self.fields.append(path)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def result(self) -> ValidationResult:
        return ValidationResult(
            blocking=self.blocking,
            warnings=self.warnings,
            invalid_fields=self.fields,
            valid=not self.blocking,
            suggestions=self.suggestions,
        )


def member_label(member: Member, index: int) -> str:
    return member.display_name or f"Membre #{index + 1}"


def is_valid_email(value: str | None) -> bool:
    return bool(value) and bool(_EMAIL_RE.match(value.strip()))


def parse_rooms(value: float | str | None) -> float | None:
    """Nombre de pièces en demi-pièces (`3`, `3.5`, `"3,5"`, `"3.5 pièces"`), sinon None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        rooms = float(value)
    else:
        match = _ROOMS_RE.match(value)
        if not match:
            return None
        rooms = float(f"{match.group(1)}.{match.group(2) or 0}")
    if not math.isfinite(rooms) or rooms <= 0 or not (rooms * 2).is_integer():
        return None
    return rooms


def parse_amount(value: float | None) -> float | None:
    """Montant fini (NaN et infini sont traités comme absents)."""
    if value is None or isinstance(value, bool) or not math.isfinite(value):
        return None
    return float(value)


# ---------------------------------------------------------------- Pré-filtrage


def validate_prefiltering(application: Application, today: date | None = None) -> ValidationResult:
    """Domicile OU travail à Lausanne depuis 3 ans (demandes « Inscription » uniquement).

    En mode test, les manquements sont rétrogradés en avertissements. Une non-éligibilité
    confirmée (deux réponses négatives) joint les programmes de logement alternatifs.
    """
    issues = _Issues()
    if application.application_type != "Inscription":
        return issues.result()
    answers = application.prefiltering
    if answers.lives_3_years is True or answers.works_3_years is True:
        return issues.result()

    if answers.lives_3_years is None:
        problem = (
            "Indiquez si vous habitez à Lausanne depuis 3 ans et sans interruption.",
            ("prefiltering.lives_3_years",),
        )
    elif answers.works_3_years is None:
        problem = (
            "Indiquez si vous travaillez à Lausanne depuis 3 ans et sans interruption.",
            ("prefiltering.works_3_years",),
        )
    else:
        problem = (
            "Non éligible : ni domicile ni activité professionnelle à Lausanne depuis 3 ans.",
            ("prefiltering.lives_3_years", "prefiltering.works_3_years"),
        )
        issues.suggestions = build_refusal_suggestions()
    message, paths = problem
    if application.test_mode:
        issues.warn(f"Mode test — {message}")
    else:
        issues.block(message, *paths)
    return issues.result()


# ---------------------------------------------------------------- Ménage


def _check_address(member: Member, label: str, path: str, issues: _Issues) -> None:
    a = member.address
    if a.kind == "etranger":
        if not (a.street and a.city and a.country):
            issues.block(f"{label} : adresse incomplète (Rue, Ville, Pays).", f"{path}.address")
    elif not (a.street and a.number and a.postal_code and a.commune):
        issues.block(f"{label} : adresse incomplète (Rue, N°, NPA, Commune).", f"{path}.address")


def _check_permit(
    member: Member, label: str, path: str, issues: _Issues, today: date | None
) -> None:
    if member.permit.type is None:
        issues.block(f"{label} : type de permis requis.", f"{path}.permit.type")
        return
    if requires_expiration(member):
        expires = parse_date(member.permit.expires_on)
        if expires is None:
            issues.block(
                f"{label} : date d’expiration du permis requise.", f"{path}.permit.expires_on"
            )
        elif is_past_date(expires, today):
            if member.is_tenant:
                issues.block(
                    f"{label} : permis expiré — refus bloquant.", f"{path}.permit.expires_on"
                )
            else:
                issues.warn(f"{label} : permis expiré — le membre sera exclu du calcul des pièces.")
    if not is_recognized_permit(member):
        if member.is_tenant:
            issues.block(
                f"{label} : permis invalide pour titulaire/co‑titulaire.", f"{path}.permit.type"
            )
        else:
            issues.warn(f"{label} : permis non reconnu — le membre sera exclu du calcul des pièces.")
    elif not member.documents.permit_scan:
        issues.block(f"{label} : copie du permis de séjour requise.", f"{path}.documents.permit_scan")


def _check_civil_status(
    member: Member, label: str, path: str, holders: list[Member], issues: _Issues
) -> None:
    if member.civil_status in JUDGMENT_CIVIL_STATUSES:
        docs = member.documents
        if not docs.civil_status_judgment and not docs.civil_status_judgment_later:
            issues.block(
                f"{label} : justificatif (PDF) requis ou cochez « Joindre plus tard ».",
                f"{path}.documents.civil_status_judgment",
            )
    if member.civil_status == "Marié·e" and member.is_tenant and len(holders) == 1:
        if not (member.marriage.spouse_location or "").strip():
            issues.block(
                f"{label} : renseignez le lieu du conjoint.", f"{path}.marriage.spouse_location"
            )
        if not member.marriage.certificate:
            issues.block(
                f"{label} : fournir certificat de mariage ou explication (PDF).",
                f"{path}.marriage.certificate",
            )


def validate_household(application: Application, today: date | None = None) -> ValidationResult:
    """Composition du ménage: titulaires, champs requis par membre, pièces et contacts."""
    issues = _Issues()
    members = application.members
    holders = tenants(members)
    primaries = [m for m in members if m.role == "preneur"]

    if not primaries:
        issues.block("Un titulaire est obligatoire.", "members")
    elif len(primaries) > 1:
        issues.block("Un seul titulaire principal est admis.", "members")
    if len(holders) > 2:
        issues.block("Maximum deux titulaires (titulaire + co‑titulaire).", "members")

    for idx, m in enumerate(members):
        label = member_label(m, idx)
        path = f"members[{idx}]"

        if not m.last_name:
            issues.block(f"{label} : nom requis.", f"{path}.last_name")
        if not m.first_name:
            issues.block(f"{label} : prénom requis.", f"{path}.first_name")

        if m.is_unborn:
            if parse_date(m.due_date) is None:
                issues.block(f"{label} : date prévue d’accouchement requise.", f"{path}.due_date")
            if not m.pregnancy.certificate:
                issues.warn(
                    f"{label} : sans certificat (≥ 13e semaine), l’enfant ne sera pas comptabilisé."
                )
            continue

        if not m.gender:
            issues.block(f"{label} : genre requis.", f"{path}.gender")
        years = age(m.birth_date, today)
        if years is None:
            issues.block(f"{label} : date de naissance requise.", f"{path}.birth_date")
        _check_address(m, label, path, issues)

        if not m.nationality.iso:
            issues.block(f"{label} : nationalité requise.", f"{path}.nationality")
        elif not m.is_swiss:
            _check_permit(m, label, path, issues, today)

        if m.role in ("preneur", "co-titulaire", "autre") and not m.documents.identity:
            issues.block(f"{label} : pièce d’identité requise.", f"{path}.documents.identity")

        if m.is_tenant and years is not None and years < ADULT_AGE:
            issues.block(f"{label} : un·e titulaire doit être majeur·e.", f"{path}.birth_date")

        if is_adult(m, today):
            _check_civil_status(m, label, path, holders, issues)
        elif m.guardian is not None:
            issues.warn(f"{label} : la curatelle ne concerne que les adultes, elle sera ignorée.")

    adults = [m for m in members if is_adult(m, today)]
    if not any(a.phone for a in adults):
        issues.block("Au moins un adulte doit fournir un téléphone.", "members.phone")
    if not any(a.email for a in adults):
        issues.block("Au moins un adulte doit fournir un email.", "members.email")
    return issues.result()


# ---------------------------------------------------------------- Logement


def validate_housing(application: Application, today: date | None = None) -> ValidationResult:
    issues = _Issues()
    housing = application.housing
    if housing.rooms is None or housing.rooms == "":
        issues.block("Le nombre de pièces est requis.", "housing.rooms")
    elif parse_rooms(housing.rooms) is None:
        issues.block("Format invalide pour les pièces.", "housing.rooms")

    rent = parse_amount(housing.monthly_rent)
    if rent is None:
        issues.block("Le loyer mensuel est requis.", "housing.monthly_rent")
    elif rent < 0:
        issues.block("Le loyer doit être positif.", "housing.monthly_rent")

    if not (housing.reason or "").strip():
        issues.block("Le motif est requis.", "housing.reason")
    elif housing.reason not in HOUSING_REASONS:
        issues.block("Motif de demande inconnu.", "housing.reason")
    return issues.result()


# ---------------------------------------------------------------- Finances


def sources_by_member(application: Application) -> dict[str, list[str]]:
    """Sources déclarées par membre, sans doublon, dans l'ordre de saisie."""
    result: dict[str, list[str]] = defaultdict(list)
    for entry in application.finances:
        if entry.source not in result[entry.member_id]:
            result[entry.member_id].append(entry.source)
    return result


def entries_missing_docs(application: Application) -> list[tuple[int, MissingFinanceDocs]]:
    """Entrées (hors « sans revenu ») sans fichier, sans « plus tard » et sans pièce employeur."""
    via_work = application.prefiltering.via_work
    missing = []
    for idx, entry in enumerate(application.finances):
        if entry.source == NO_INCOME:
            continue
        member = application.member_by_id(entry.member_id)
        if member is None:
            continue
        employer_docs = any(emp.documents for emp in entry.employers)
        if entry.pieces.later or entry.pieces.files or employer_docs:
            continue
        missing.append(
            (
                idx,
                MissingFinanceDocs(
                    member_id=member.id,
                    member_name=member.display_name or "Personne",
                    source=entry.source,
                    source_label=source_label(entry.source),
                    required=required_docs_for(entry.source, via_work),
                ),
            )
        )
    return missing


def validate_finances(application: Application, today: date | None = None) -> ValidationResult:
    """Au moins une source par adulte, pas uniquement « sans revenu », justificatifs présents."""
    issues = _Issues()
    adults = classify(application.members, today).adults
    declared = sources_by_member(application)

    adult_ids = {a.id for a in adults}
    for idx, m in enumerate(application.members):
        if m.id in adult_ids and not declared.get(m.id):
            issues.block(
                f"{member_label(m, idx)} : sélectionnez au moins une source de revenu.",
                f"finances.{m.id}",
            )

    with_entries = [declared[a.id] for a in adults if declared.get(a.id)]
    if with_entries and all(set(s) == {NO_INCOME} for s in with_entries):
        issues.block("Tous les adultes ne peuvent pas être sans revenu.", "finances")

    for idx, item in entries_missing_docs(application):
        required = " · ".join(item.required) or "Justificatifs"
        issues.block(
            f"{item.member_name} — {item.source_label} : justificatifs manquants "
            f"({required}) ou cochez « Joindre plus tard ».",
            f"finances[{idx}].pieces",
        )
    return issues.result()


# ---------------------------------------------------------------- Jeunes / étudiants


def youth_track_applies(application: Application, today: date | None = None) -> bool:
    """Volet affiché pour « Conditions étudiantes » avec un preneur de 18 à 25 ans (exclu)."""
    if application.application_type != "Conditions étudiantes":
        return False
    preneur = application.primary_tenant()
    years = age(preneur.birth_date, today) if preneur else None
    return years is not None and ADULT_AGE <= years < YOUNG_TENANT_AGE


def validate_youth(application: Application, today: date | None = None) -> ValidationResult:
    issues = _Issues()
    if application.application_type != "Conditions étudiantes":
        return issues.result()
    if not youth_track_applies(application, today):
        preneur = application.primary_tenant()
        if preneur is not None and age(preneur.birth_date, today) is not None:
            issues.warn(
                "Conditions étudiantes réservées aux 18–25 ans : "
                "la demande sera traitée aux conditions générales."
            )
        return issues.result()

    youth = application.youth
    location = (youth.training_location or "").strip()
    if not location:
        issues.block(
            "Le champ « Lieu de formation » est obligatoire.", "youth.training_location"
        )

    if youth.general_public:
        if not (youth.compelling_reason or "").strip():
            issues.block("Décrivez le motif impérieux.", "youth.compelling_reason")
        if not youth.compelling_reason_file:
            issues.block(
                "En mode tout public, la pièce jointe du motif impérieux est obligatoire.",
                "youth.compelling_reason_file",
            )
    else:
        if location and not is_corel_commune(location):
            issues.block(
                "Lieu hors COREL : non éligible aux conditions étudiantes.",
                "youth.training_location",
            )
        if not youth.scholarship_or_income:
            issues.block(
                "Confirmez disposer d’une bourse ou d’un revenu minimum.",
                "youth.scholarship_or_income",
            )
    return issues.result()


# ---------------------------------------------------------------- Consentements


def validate_consents(application: Application, today: date | None = None) -> ValidationResult:
    issues = _Issues()
    consents = application.consents
    if not consents.selfie:
        issues.block("Un selfie est requis.", "consents.selfie")
    if not consents.data_accuracy:
        issues.block(
            "Vous devez certifier l’exactitude des informations.", "consents.data_accuracy"
        )
    if not consents.rdu_access:
        issues.block(
            "Vous devez autoriser l’accès aux données financières (RDU).", "consents.rdu_access"
        )
    adults = [m for m in application.members if is_adult(m, today)]
    if len(adults) > 1 and not consents.other_adults:
        issues.block(
            "Vous devez confirmer l’accord explicite des autres adultes du ménage.",
            "consents.other_adults",
        )
    # Envoi séparé facultatif: jamais bloquant
    if consents.copy_requested and not is_valid_email(consents.copy_email):
        issues.warn("Adresse e-mail d’envoi de la copie invalide : aucune copie ne sera envoyée.")
    return issues.result()


StepValidator = Callable[[Application, date | None], ValidationResult]

STEP_VALIDATORS: dict[str, StepValidator] = {
    "prefiltering": validate_prefiltering,
    "household": validate_household,
    "housing": validate_housing,
    "finances": validate_finances,
    "youth": validate_youth,
    "consents": validate_consents,
}
