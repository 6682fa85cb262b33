"""Validité des titres de séjour.

`is_permit_valid` est l'unique autorité sur la validité d'un permis: classification du ménage,
barème des pièces, documents manquants et refus l'utilisent tous.
"""

from __future__ import annotations

from datetime import date

from llm_intake.domain.dates import days_until, is_past_date, parse_date
from llm_intake.domain.entities import Member

RECOGNIZED_PERMITS: tuple[str, ...] = ("Permis C", "Permis B", "Permis F")
EXPIRING_PERMITS: tuple[str, ...] = ("Permis B", "Permis F")


def is_recognized_permit(member: Member) -> bool:
    return member.permit.type in RECOGNIZED_PERMITS


def requires_expiration(member: Member) -> bool:
    return member.permit.type in EXPIRING_PERMITS


def is_permit_valid(member: Member, today: date | None = None) -> bool:
    """Indique si le membre dispose d'un droit de séjour exploitable.

    - Nationalité suisse: toujours valide.
    - Sinon: permis C, B ou F exigé.
    - Permis B/F: date d'expiration présente, lisible et non dépassée.
    """
    if member.is_swiss:
        return True
    if not is_recognized_permit(member):
        return False
    if requires_expiration(member):
        expires = parse_date(member.permit.expires_on)
        if expires is None:
            return False
        if is_past_date(expires, today):
            return False
    return True


def permit_expiring_within(member: Member, days: int, today: date | None = None) -> bool:
    """Vrai si un permis B/F expire dans les `days` jours (ou est déjà expiré)."""
    if member.is_swiss or not requires_expiration(member):
        return False
    remaining = days_until(member.permit.expires_on, today)
    return remaining is not None and remaining <= days
