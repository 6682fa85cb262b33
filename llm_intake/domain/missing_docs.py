"""Inventaire des documents manquants, différés et information « titres de séjour ».

Ce module parcourt l'instantané et produit:
- des avertissements (pièces absentes qui n'empêchent pas le dépôt mais peuvent exclure un membre),
- la liste des documents « Joindre plus tard », une entrée par pièce différée,
- les pièces bloquantes pour le récapitulatif,
- l'information sur les permis non reconnus, incomplets ou proches de l'échéance.
"""

from __future__ import annotations

from datetime import date

from llm_intake.domain.catalog import (
    JUDGMENT_CIVIL_STATUSES,
    NO_INCOME,
    required_docs_for,
    source_label,
)
from llm_intake.domain.dates import age, days_until, format_ch, parse_date
from llm_intake.domain.entities import Application, Member
from llm_intake.domain.household import ADULT_AGE, is_adult, tenants, unsupported_children
from llm_intake.domain.models import DeferredDocument, MissingDocsReport, PermitNotice
from llm_intake.domain.permits import (
    is_recognized_permit,
    permit_expiring_within,
    requires_expiration,
)
from llm_intake.domain.validators import member_label, youth_track_applies

PERMIT_NOTICE_DAYS = 60

PERMIT_NOTICE_TEXT = (
    "Les membres du ménage de nationalité étrangère doivent disposer d’un titre de séjour "
    "valable (permis C, B ou F). Un permis non reconnu, sans date d’expiration ou arrivant à "
    "échéance dans les {days} prochains jours n’est pas pris en compte dans la composition du ménage "
    "tant que son renouvellement n’a pas été transmis. La demande peut être déposée; joignez le "
    "titre renouvelé ou la preuve de la demande de renouvellement dès que possible."
)


def _member_warnings(
    member: Member, label: str, holders: list[Member], today: date | None
) -> list[str]:
    warnings: list[str] = []
    if member.is_unborn:
        if parse_date(member.due_date) is None:
            warnings.append(f"Date prévue d’accouchement manquante pour {label}.")
        if not member.pregnancy.certificate:
            warnings.append(
                f"Certificat de grossesse (≥ 13e semaine) manquant pour {label} : "
                "enfant non comptabilisé."
            )
        return warnings

    docs = member.documents
    if member.role in ("preneur", "co-titulaire", "autre") and not docs.identity:
        warnings.append(f"Pièce d’identité manquante pour {label}.")
    if member.nationality.iso and not member.is_swiss:
        if is_recognized_permit(member) and not docs.permit_scan:
            warnings.append(f"Copie du permis de séjour manquante pour {label}.")
        if requires_expiration(member) and parse_date(member.permit.expires_on) is None:
            warnings.append(f"Date d’expiration du permis manquante ou invalide pour {label}.")

    if is_adult(member, today):
        if (
            member.civil_status in JUDGMENT_CIVIL_STATUSES
            and not docs.civil_status_judgment
            and not docs.civil_status_judgment_later
        ):
            warnings.append(
                f"Jugement complet (divorce / séparation / dissolution) manquant pour {label}."
            )
        if (
            member.civil_status == "Marié·e"
            and member.is_tenant
            and len(holders) == 1
            and not member.marriage.certificate
        ):
            warnings.append(f"Certificat de mariage manquant pour {label}.")
    return warnings


def _deferred_civil_status(application: Application) -> list[DeferredDocument]:
    items = []
    for idx, m in enumerate(application.members):
        docs = m.documents
        if docs.civil_status_judgment_later and not docs.civil_status_judgment:
            items.append(
                DeferredDocument(
                    id=f"{m.id}:etat_civil",
                    member_id=m.id,
                    member_name=member_label(m, idx),
                    category="etat_civil",
                    category_label="État civil",
                    field_path=f"members[{idx}].documents.civil_status_judgment",
                    label="Jugement complet (divorce, séparation ou dissolution)",
                )
            )
    return items


def extract_deferred_finances(application: Application) -> list[DeferredDocument]:
    """Une entrée par source de revenu marquée « Joindre plus tard ».

    Les pièces employeur n'ajoutent pas d'entrée: le bloc principal suffit à réclamer les
    justificatifs de la source.
    """
    via_work = application.prefiltering.via_work
    items: list[DeferredDocument] = []
    seen: set[str] = set()
    for idx, entry in enumerate(application.finances):
        if not entry.pieces.later or entry.source == NO_INCOME:
            continue
        item_id = f"{entry.member_id}:{entry.source}:pieces"
        if item_id in seen:
            continue
        seen.add(item_id)
        member = application.member_by_id(entry.member_id)
        member_name = member.display_name if member else ""
        docs = required_docs_for(entry.source, via_work)
        items.append(
            DeferredDocument(
                id=item_id,
                member_id=entry.member_id,
                member_name=member_name or "Personne",
                category=entry.source,
                category_label=source_label(entry.source),
                field_path=f"finances[{idx}].pieces",
                label=" · ".join(docs) if docs else "Justificatifs",
            )
        )
    return items


def _unsupported_child_warnings(application: Application) -> list[str]:
    warnings = []
    indexes = {m.id: i for i, m in enumerate(application.members)}
    for child in unsupported_children(application.members):
        label = member_label(child, indexes[child.id])
        if child.custody is None:
            warnings.append(
                f"Situation de garde non renseignée pour {label} : "
                "enfant exclu du calcul des pièces."
            )
        else:
            warnings.append(
                f"Justificatif parental (convention ratifiée ou jugement) manquant pour {label} : "
                "enfant exclu du calcul des pièces."
            )
    return warnings


def _permit_line(member: Member, label: str, days: int, today: date | None) -> str | None:
    permit = member.permit.type
    if not is_recognized_permit(member):
        return f"{label} — {permit or 'aucun permis'} : titre non reconnu, membre non comptabilisé."
    if not requires_expiration(member):
        return None
    expires = parse_date(member.permit.expires_on)
    if expires is None:
        return f"{label} — {permit} : date d’expiration manquante ou invalide."
    remaining = days_until(expires, today)
    if remaining < 0:
        return f"{label} — {permit} : expiré depuis le {format_ch(expires)}."
    if permit_expiring_within(member, days, today):
        return f"{label} — {permit} : expire le {format_ch(expires)} (dans {remaining} jour(s))."
    return None


def build_permit_notice(
    application: Application, today: date | None = None, days: int = PERMIT_NOTICE_DAYS
) -> PermitNotice | None:
    """Information « titres de séjour », ou None si aucun membre n'est concerné."""
    lines = []
    for idx, m in enumerate(application.members):
        if m.is_unborn or m.is_swiss or not m.nationality.iso:
            continue
        line = _permit_line(m, member_label(m, idx), days, today)
        if line:
            lines.append(line)
    if not lines:
        return None
    return PermitNotice(notice=PERMIT_NOTICE_TEXT.format(days=days), lines=lines)


def _blocking(application: Application, today: date | None) -> list[str]:
    blocking = []
    preneur = application.primary_tenant()
    if preneur is not None:
        years = age(preneur.birth_date, today)
        if years is not None and years < ADULT_AGE and not preneur.documents.emancipation:
            blocking.append("Certificat d’émancipation requis pour preneur·euse mineur·e.")
    if not application.consents.selfie:
        blocking.append("Selfie d’identification manquant.")
    youth = application.youth
    if (
        youth_track_applies(application, today)
        and youth.general_public
        and not youth.compelling_reason_file
    ):
        blocking.append("Justificatif du motif impérieux manquant.")
    return blocking


def build_missing_docs(
    application: Application,
    today: date | None = None,
    notice_days: int = PERMIT_NOTICE_DAYS,
) -> MissingDocsReport:
    """Construit l'inventaire complet pour l'écran récapitulatif."""
    holders = tenants(application.members)
    warnings: list[str] = []
    for idx, m in enumerate(application.members):
        warnings.extend(_member_warnings(m, member_label(m, idx), holders, today))
    warnings.extend(_unsupported_child_warnings(application))

    return MissingDocsReport(
        warnings=warnings,
        deferred=_deferred_civil_status(application) + extract_deferred_finances(application),
        blocking=_blocking(application, today),
        permit_notice=build_permit_notice(application, today, notice_days),
    )
