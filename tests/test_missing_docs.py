"""
Tests de l'inventaire des documents manquants et de l'information « titres de séjour ».
"""

from __future__ import annotations

from llm_intake.domain.missing_docs import (
    build_missing_docs,
    build_permit_notice,
    extract_deferred_finances,
)
from tests.fakes import (
    TODAY,
    child,
    complete_application,
    foreign_adult,
    income,
    swiss_adult,
    unborn,
    upload,
)

SHORT_WINDOW_DAYS = 30


def test_complete_application_has_nothing_missing() -> None:
    """Teste qu'une demande complète ne produit ni avertissement ni pièce différée."""
    report = build_missing_docs(complete_application(), TODAY)
    assert report.warnings == []
    assert report.deferred == []
    assert report.blocking == []
    assert report.permit_notice is None


def test_deferred_finance_entry_listed_once() -> None:
    """Teste qu'une source « Joindre plus tard » apparaît une seule fois, même sans pièce employeur."""
    tenant = swiss_adult()
    later = income(tenant, pieces={"later": True}, employers=[{"name": "ACME"}])
    application = complete_application([tenant], finances=[later.model_dump()])

    deferred = extract_deferred_finances(application)

    assert len(deferred) == 1
    item = deferred[0]
    assert item.member_name == "Alex Martin"
    assert item.category_label == "Salarié·e"
    assert item.label == "Contrat de travail · 6 dernières fiches de salaire"
    assert item.field_path == "finances[0].pieces"


def test_deferred_duplicates_collapsed() -> None:
    """Teste la déduplication par (membre, source)."""
    tenant = swiss_adult()
    entry = income(tenant, pieces={"later": True}).model_dump()
    application = complete_application([tenant], finances=[entry, entry])
    assert len(extract_deferred_finances(application)) == 1


def test_deferred_ignores_no_income_and_attached_documents() -> None:
    """Teste que seules les sources marquées « plus tard » sont différées."""
    tenant = swiss_adult()
    application = complete_application(
        [tenant],
        finances=[
            income(tenant).model_dump(),
            income(tenant, "sans_revenu", pieces={"later": True}).model_dump(),
        ],
    )
    assert extract_deferred_finances(application) == []


def test_deferred_civil_status_judgment() -> None:
    """Teste le jugement d'état civil différé."""
    member = swiss_adult(
        civil_status="Séparé·e",
        documents={"identity": [upload().model_dump()], "civil_status_judgment_later": True},
    )
    report = build_missing_docs(complete_application([member]), TODAY)
    assert [d.category for d in report.deferred] == ["etat_civil"]
    assert report.warnings == []


def test_member_warnings() -> None:
    """Teste les avertissements par membre (identité, permis, enfant à naître)."""
    partner = foreign_adult(
        "Permis B", None, role="co-titulaire", first_name="Lou", documents={}
    )
    members = [swiss_adult(), partner, unborn(certificate=False)]
    report = build_missing_docs(complete_application(members), TODAY)
    assert report.warnings == [
        "Pièce d’identité manquante pour Lou Martin.",
        "Copie du permis de séjour manquante pour Lou Martin.",
        "Date d’expiration du permis manquante ou invalide pour Lou Martin.",
        "Certificat de grossesse (≥ 13e semaine) manquant pour Bébé Martin : "
        "enfant non comptabilisé.",
    ]


def test_solo_male_children_warnings() -> None:
    """Teste les avertissements pour les enfants d'un homme seul."""
    members = [
        swiss_adult(gender="Homme"),
        child(),
        child("2016-02-02", first_name="Eli", custody="garde_partagee"),
    ]
    report = build_missing_docs(complete_application(members), TODAY)
    assert any(w.startswith("Situation de garde non renseignée pour Sam Martin") for w in report.warnings)
    assert any(w.startswith("Justificatif parental") and "Eli Martin" in w for w in report.warnings)


def test_blocking_items() -> None:
    """Teste les pièces bloquantes: selfie et émancipation d'un preneur mineur."""
    application = complete_application([swiss_adult(birth_date="2009-01-01")], consents={})
    report = build_missing_docs(application, TODAY)
    assert report.blocking == [
        "Certificat d’émancipation requis pour preneur·euse mineur·e.",
        "Selfie d’identification manquant.",
    ]


def test_permit_notice_for_expiring_permit() -> None:
    """Teste l'information « titres de séjour » pour un permis proche de l'échéance."""
    member = foreign_adult("Permis B", "2025-07-15", role="autre", first_name="Noa")
    notice = build_permit_notice(complete_application([swiss_adult(), member]), TODAY)
    assert notice is not None
    assert "60 prochains jours" in notice.notice
    assert notice.lines == ["Noa Martin — Permis B : expire le 15.07.2025 (dans 30 jour(s))."]


def test_permit_notice_lines() -> None:
    """Teste les lignes pour un permis expiré et un permis non reconnu."""
    expired = foreign_adult("Permis F", "2025-06-01", role="autre", first_name="Noa")
    unknown = foreign_adult("Sans permis", None, role="autre", first_name="Ari")
    notice = build_permit_notice(complete_application([swiss_adult(), expired, unknown]), TODAY)
    assert notice.lines == [
        "Noa Martin — Permis F : expiré depuis le 01.06.2025.",
        "Ari Martin — Sans permis : titre non reconnu, membre non comptabilisé.",
    ]


def test_permit_notice_absent_when_far_from_expiry() -> None:
    """Teste l'absence d'information pour un permis valable longtemps ou un permis C."""
    members = [
        swiss_adult(),
        foreign_adult("Permis B", "2026-01-31", role="autre", first_name="Noa"),
        foreign_adult("Permis C", None, role="autre", first_name="Ari"),
    ]
    assert build_permit_notice(complete_application(members), TODAY) is None


def test_permit_notice_window_is_configurable() -> None:
    """Teste la fenêtre d'échéance paramétrable."""
    member = foreign_adult("Permis B", "2025-08-01", role="autre", first_name="Noa")
    application = complete_application([swiss_adult(), member])
    assert build_permit_notice(application, TODAY) is not None
    assert build_permit_notice(application, TODAY, days=SHORT_WINDOW_DAYS) is None
