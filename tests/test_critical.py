"""
Tests du contrôle final avant dépôt (refus et erreurs de champ).
"""

from __future__ import annotations

import pytest

from llm_intake.domain.catalog import build_refusal_suggestions
from llm_intake.domain.critical import (
    REFUSAL_ALL_NO_INCOME,
    REFUSAL_INVALID_PERMIT,
    REFUSAL_MINOR_TENANT,
    REFUSAL_NO_INCOME_DATA,
    run_critical_validations,
)
from llm_intake.domain.household import classify
from llm_intake.domain.permits import is_permit_valid
from tests.fakes import TODAY, complete_application, foreign_adult, income, swiss_adult, upload

SUGGESTION_COUNT = 4


def _couple_without_income():
    tenant = swiss_adult()
    partner = swiss_adult(role="co-titulaire", first_name="Lou")
    entries = [
        income(tenant, "sans_revenu", pieces={}).model_dump(),
        income(partner, "sans_revenu", pieces={}).model_dump(),
    ]
    return tenant, partner, entries


def test_complete_application_not_refused() -> None:
    """Teste qu'une demande complète n'est pas refusée."""
    result = run_critical_validations(complete_application(), TODAY)
    assert result.refusals == []
    assert result.field_errors == []
    assert result.submission_allowed is True


def test_all_adults_without_income_refused() -> None:
    """Teste le refus quand tous les adultes sont « sans revenu »."""
    tenant, partner, entries = _couple_without_income()
    result = run_critical_validations(complete_application([tenant, partner], finances=entries), TODAY)
    assert REFUSAL_ALL_NO_INCOME in result.refusals
    assert result.submission_allowed is False


def test_adding_an_income_clears_the_refusal() -> None:
    """Teste qu'une source supplémentaire pour un adulte lève le refus « sans revenu »."""
    tenant, partner, entries = _couple_without_income()
    entries.append(income(partner, "chomage").model_dump())
    result = run_critical_validations(complete_application([tenant, partner], finances=entries), TODAY)
    assert REFUSAL_ALL_NO_INCOME not in result.refusals
    assert result.refusals == []


def test_no_income_data_refused() -> None:
    """Teste le refus quand aucune source n'est déclarée pour les adultes."""
    result = run_critical_validations(complete_application(finances=[]), TODAY)
    assert result.refusals == [REFUSAL_NO_INCOME_DATA]


def test_expired_permit_f_tenant() -> None:
    """Teste un preneur au permis F expiré hier: exclu du ménage et refus « permis »."""
    tenant = foreign_adult("Permis F", "2025-06-14")
    application = complete_application([tenant])

    assert is_permit_valid(tenant, TODAY) is False
    classification = classify(application.members, TODAY)
    assert classification.adults == []
    assert [m.id for m in classification.excluded_by_permit] == [tenant.id]
    assert run_critical_validations(application, TODAY).refusals == [REFUSAL_INVALID_PERMIT]


def test_minor_tenant_without_emancipation() -> None:
    """Teste le refus d'un preneur mineur, levé par un document d'émancipation."""
    minor = swiss_adult(birth_date="2009-01-01")
    result = run_critical_validations(complete_application([minor]), TODAY)
    assert result.refusals == [REFUSAL_MINOR_TENANT]

    emancipated = swiss_adult(
        birth_date="2009-01-01",
        documents={
            "identity": [upload().model_dump()],
            "emancipation": [upload("emancipation.pdf").model_dump()],
        },
    )
    assert run_critical_validations(complete_application([emancipated]), TODAY).refusals == []


@pytest.mark.parametrize("degree", [None, 0, 150, 33.5])
def test_field_error_disability_degree(degree) -> None:
    """Teste le degré d'invalidité hors plage ou non entier."""
    tenant = swiss_adult()
    application = complete_application(
        [tenant], finances=[income(tenant, "ai", disability_degree=degree).model_dump()]
    )
    result = run_critical_validations(application, TODAY)
    assert len(result.field_errors) == 1
    assert "degré d’invalidité" in result.field_errors[0]


def test_valid_disability_degree() -> None:
    """Teste qu'un degré entier entre 1 et 100 est accepté."""
    tenant = swiss_adult()
    application = complete_application(
        [tenant], finances=[income(tenant, "ai", disability_degree=70).model_dump()]
    )
    assert run_critical_validations(application, TODAY).field_errors == []


def test_field_errors_do_not_block_submission() -> None:
    """Teste les erreurs de champ (membre inconnu, doublon, pièces, loyer) sans refus."""
    tenant = swiss_adult()
    application = complete_application(
        [tenant],
        housing={"rooms": "beaucoup", "monthly_rent": -1, "reason": "Autres"},
        finances=[
            income(tenant).model_dump(),
            income(tenant).model_dump(),
            {"member_id": "inconnu", "source": "avs"},
        ],
    )
    result = run_critical_validations(application, TODAY)
    assert result.field_errors == [
        "Alex Martin — Salarié·e : source déclarée plusieurs fois.",
        "Entrée de revenu n°3 : membre inconnu.",
        "Nombre de pièces : format invalide.",
        "Loyer mensuel : valeur négative.",
    ]
    assert result.refusals == []
    assert result.submission_allowed is True


def test_refusal_suggestions() -> None:
    """Teste la liste fixe des programmes alternatifs."""
    suggestions = build_refusal_suggestions()
    assert len(suggestions) == SUGGESTION_COUNT
    assert suggestions[0].title.startswith("LLA")
    assert all(s.href.startswith("https://") for s in suggestions)


@pytest.mark.parametrize("rooms", [1e308, float("nan"), float("inf")])
def test_field_error_non_finite_rooms(rooms) -> None:
    """Teste qu'un nombre de pièces non représentable reste une erreur de champ."""
    application = complete_application(
        housing={"rooms": rooms, "monthly_rent": 1450, "reason": "Bail résilié"}
    )
    result = run_critical_validations(application, TODAY)
    assert result.refusals == []
    assert result.field_errors == ["Nombre de pièces : format invalide."]


def test_field_error_non_finite_rent() -> None:
    """Teste qu'un loyer NaN n'est pas accepté comme loyer valide."""
    application = complete_application(
        housing={"rooms": 3.5, "monthly_rent": float("nan"), "reason": "Bail résilié"}
    )
    result = run_critical_validations(application, TODAY)
    assert result.field_errors == ["Loyer mensuel : valeur invalide."]
