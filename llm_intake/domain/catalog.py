"""Tables de référence du dispositif LLM.

Libellés des sources de revenu, pièces justificatives attendues par source, communes COREL,
motifs de demande et programmes alternatifs proposés en cas de refus.
"""

from __future__ import annotations

import unicodedata

from llm_intake.domain.entities import FinanceSource
from llm_intake.domain.models import Suggestion

SOURCE_LABELS: dict[str, str] = {
    "salarie": "Salarié·e",
    "independant": "Indépendant·e",
    "apprentissage": "Apprentissage / job",
    "ai": "Rente AI",
    "avs": "Rente AVS",
    "pilier2": "2ᵉ pilier (LPP)",
    "rente_pont": "Rente-pont",
    "chomage": "Chômage",
    "pcfamille": "PC Famille",
    "pc": "Prestation complémentaire (PC)",
    "ri": "Revenu d’insertion (RI)",
    "evam": "EVAM",
    "pension": "Pension alimentaire",
    "formation": "En formation",
    "bourse": "Bourse d’études",
    "autres": "Autres revenus",
    "sans_revenu": "Sans revenu",
}

SOURCE_GROUPS: dict[str, tuple[str, ...]] = {
    "Travail": ("salarie", "independant", "apprentissage"),
    "Assurances sociales / rentes": ("ai", "avs", "pilier2", "rente_pont", "chomage"),
    "Prestations / aides publiques": ("pcfamille", "pc", "ri", "evam"),
    "Obligations familiales": ("pension",),
    "Formation": ("formation", "bourse"),
    "Autres": ("sans_revenu", "autres"),
}

NO_INCOME: FinanceSource = "sans_revenu"

_REQUIRED_DOCS: dict[str, tuple[str, ...]] = {
    "salarie": ("Contrat de travail", "6 dernières fiches de salaire"),
    "independant": (
        "Bilan fiduciaire",
        "Si activité < 1 an : décision de cotisations AVS provisoire",
    ),
    "apprentissage": ("Contrat", "Dernière fiche de salaire"),
    "ai": ("Décision AI récente", "Si > 1 an : attestation fiscale récente"),
    "avs": ("Décision AVS récente", "Si > 1 an : attestation fiscale récente"),
    "pilier2": ("Attestation fiscale de la rente LPP",),
    "rente_pont": ("Décision de rente-pont",),
    "chomage": ("Dernier décompte de chômage",),
    "pcfamille": ("Décision récente de PC Famille",),
    "pc": ("Décision récente de Prestation Complémentaire (PC)",),
    "ri": ("3 derniers budgets mensuels (RI)",),
    "evam": ("3 derniers budgets mensuels (EVAM)",),
    "pension": ("Convention ratifiée (justificatif)",),
    "formation": (
        "Attestation d’études",
        "Si formation rémunérée : justificatif du revenu "
        "(contrat, fiche de salaire ou décision d’allocation)",
    ),
    "bourse": ("Avis d’octroi de bourse d’études",),
    "autres": ("Justificatif pertinent (ex. APG : dernier décompte ou décision)",),
    "sans_revenu": (),
}

# Pré-filtrage validé par le travail: exigences renforcées
_REQUIRED_DOCS_VIA_WORK: dict[str, tuple[str, ...]] = {
    "salarie": (
        "Contrat de travail",
        "6 dernières fiches de salaire",
        "Certificats de salaire des 3 dernières années",
    ),
    "independant": ("Bilan fiduciaire des 3 dernières années", "Bail commercial"),
}


def source_label(source: str) -> str:
    return SOURCE_LABELS.get(source, source)


def required_docs_for(source: str, via_work: bool = False) -> list[str]:
    """Pièces attendues pour une source de revenu (liste vide pour « sans revenu »)."""
    if via_work and source in _REQUIRED_DOCS_VIA_WORK:
        return list(_REQUIRED_DOCS_VIA_WORK[source])
    return list(_REQUIRED_DOCS.get(source, ()))


# Communes COREL + Lausanne (liste fermée du volet étudiant)
COREL_COMMUNES: tuple[str, ...] = (
    "Lausanne",
    "Bussigny",
    "Chavannes-près-Renens",
    "Crissier",
    "Ecublens",
    "Prilly",
    "Renens",
    "St-Sulpice",
    "Villars-Sainte-Croix",
    "Bottens",
    "Bretigny-sur-Morrens",
    "Cheseaux-sur-Lausanne",
    "Cugy",
    "Froideville",
    "Jouxtens-Mézery",
    "Le Mont-sur-Lausanne",
    "Morrens",
    "Romanel-sur-Lausanne",
    "Belmont-sur-Lausanne",
    "Épalinges",
    "Lutry",
    "Jorat-Mézières",
    "Montpreveyres",
    "Paudex",
    "Pully",
    "Savigny",
    "Servion",
)


def normalize_commune(name: str | None) -> str:
    """Minuscules, sans accents, tirets remplacés par des espaces, espaces compactés."""
    text = unicodedata.normalize("NFD", name or "")
    text = "".join(ch for ch in text if unicodedata.category(ch) != "Mn")
    text = text.lower().replace("-", " ").replace("’", "'")
    return " ".join(text.split())


_COREL_NORMALIZED = frozenset(normalize_commune(c) for c in COREL_COMMUNES)


def is_corel_commune(name: str | None) -> bool:
    return bool(name) and normalize_commune(name) in _COREL_NORMALIZED


HOUSING_REASONS: tuple[str, ...] = (
    "Séparation / Divorce",
    "Bail résilié",
    "Logement trop cher",
    "Logement EVAM",
    "Sous-occupation",
    "Logement trop petit",
    "Raisons médicales",
    "Trajets trop longs",
    "Sans domicile / Hôtel",
    "Arrêt sous-location",
    "Accessibilité / Handicapé",
    "Arrêt co-location",
    "Logement de transition / Secondaire",
    "Indépendance / Nouveau ménage",
    "État du logement",
    "Logement démoli",
    "Autres",
)

ROLE_LABELS: dict[str, str] = {
    "preneur": "Titulaire",
    "co-titulaire": "Co‑titulaire",
    "enfant": "Enfant",
    "autre": "Autre",
    "enfant-a-naitre": "Enfant à naître",
}

# États civils exigeant un jugement complet (pas d'extrait)
JUDGMENT_CIVIL_STATUSES: tuple[str, ...] = ("Divorcé·e", "Séparé·e", "Part. dissous")

REFUSAL_SUGGESTIONS: tuple[dict[str, str], ...] = (
    {
        "title": "LLA — Logements à Loyer Abordable",
        "href": "https://www.lausanne.ch/lla",
        "desc": "Logements à loyers modérés hors dispositif LLM.",
    },
    {
        "title": "LE — Logements Étudiants",
        "href": "https://www.lausanne.ch/logements-etudiants",
        "desc": "Offre dédiée aux étudiant·e·s.",
    },
    {
        "title": "LS — Logements Séniors",
        "href": "https://www.lausanne.ch/logements-seniors",
        "desc": "Solutions adaptées dès 60 ans.",
    },
    {
        "title": "Logements à loyer libre (Ville de Lausanne)",
        "href": "https://www.lausanne.ch/loyer-libre",
        "desc": "Annonces hors critères LLM.",
    },
)


def build_refusal_suggestions() -> list[Suggestion]:
    """Programmes de logement alternatifs proposés en cas de refus ou de non-éligibilité."""
    return [Suggestion(**item) for item in REFUSAL_SUGGESTIONS]
