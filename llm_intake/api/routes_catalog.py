"""
Tables de référence exposées à l'interface (listes déroulantes, libellés, pièces attendues).
"""

from fastapi import APIRouter

from llm_intake.domain.catalog import (
    COREL_COMMUNES,
    HOUSING_REASONS,
    ROLE_LABELS,
    SOURCE_GROUPS,
    SOURCE_LABELS,
    required_docs_for,
)

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("")
def catalog(via_work: bool = False):
    """Libellés et pièces attendues; `via_work` applique les exigences de la voie « travail »."""
    return {
        "roles": ROLE_LABELS,
        "housing_reasons": list(HOUSING_REASONS),
        "corel_communes": list(COREL_COMMUNES),
        "income_sources": [
            {
                "group": group,
                "sources": [
                    {
                        "source": source,
                        "label": SOURCE_LABELS[source],
                        "required_docs": required_docs_for(source, via_work),
                    }
                    for source in sources
                ],
            }
            for group, sources in SOURCE_GROUPS.items()
        ],
    }
