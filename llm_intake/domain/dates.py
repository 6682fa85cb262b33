"""Utilitaires de dates: âge, date passée, formats ISO et suisse.

Toutes les fonctions acceptent un `today` explicite afin que les calculs restent déterministes; à
défaut, la date du jour est utilisée. Une date absente ou illisible n'est jamais une erreur: elle est
traitée comme « inconnue ».
"""

from __future__ import annotations

from datetime import date, datetime

DateLike = date | datetime | str | None


def parse_date(value: DateLike) -> date | None:
    """Convertit une valeur (date, datetime ou chaîne ISO) en `date`, sinon None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def age(birth_date: DateLike, today: date | None = None) -> int | None:
    """Âge en années révolues; None si la date de naissance est absente ou illisible.

    L'âge est décrémenté tant que l'anniversaire de l'année n'est pas atteint.
    """
    born = parse_date(birth_date)
    if born is None:
        return None
    today = today or date.today()
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years


def is_past_date(value: DateLike, today: date | None = None) -> bool:
    """Vrai si la date est strictement antérieure à aujourd'hui; faux si illisible."""
    d = parse_date(value)
    if d is None:
        return False
    return d < (today or date.today())


def days_until(value: DateLike, today: date | None = None) -> int | None:
    d = parse_date(value)
    if d is None:
        return None
    return (d - (today or date.today())).days


def format_iso(value: DateLike) -> str:
    d = parse_date(value)
    return d.isoformat() if d else ""


def format_ch(value: DateLike) -> str:
    """Format d'affichage suisse `jj.mm.aaaa` (chaîne vide si illisible)."""
    d = parse_date(value)
    return d.strftime("%d.%m.%Y") if d else ""
