"""Génération de la référence de dépôt et de l'horodatage d'accusé de réception."""

from __future__ import annotations

import random
import string
from datetime import datetime

from llm_intake.domain.models import Reference

_ALPHABET = string.digits + string.ascii_uppercase  # base 36
SUFFIX_LENGTH = 4


def generate_reference(
    now: datetime | None = None,
    prefix: str = "LLM",
    rng: random.Random | None = None,
) -> Reference:
    """Retourne une référence `PREFIX-YYYYMMDD-HHMMSS-XXXX` et son horodatage.

    Paramètres:
    - now: instant du dépôt (horloge injectée); défaut: maintenant.
    - prefix: préfixe de la référence.
    - rng: générateur aléatoire pour le suffixe (déterministe en test).
    """
    now = now or datetime.now()
    rng = rng or random.SystemRandom()
    suffix = "".join(rng.choice(_ALPHABET) for _ in range(SUFFIX_LENGTH))
    ref = f"{prefix}-{now:%Y%m%d}-{now:%H%M%S}-{suffix}"
    return Reference(ref=ref, at=now, at_display=f"{now:%d.%m.%Y %H:%M}")
