"""
Tests des routes HTTP: validation d'étape, synthèse, récapitulatif, dépôt et enveloppes d'erreur.
"""

from __future__ import annotations

import json
import re

from llm_intake.core.http_constants import (
    HTTP_NOT_FOUND,
    HTTP_OK,
    HTTP_UNPROCESSABLE_ENTITY,
)
from tests.fakes import complete_application, foreign_adult, snapshot

SUGGESTION_COUNT = 4
ROOMS_2_5 = 2.5
REF_PATTERN = re.compile(r"^LLM-20250615-143005-[0-9A-Z]{4}$")


def test_health(client) -> None:
    """Teste que l'endpoint de santé retourne un statut OK."""
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["status"] == "ok"
    assert set(body) == {"status", "app", "env"}


def test_list_steps(client) -> None:
    """Teste la liste des étapes validables."""
    r = client.get("/steps")
    assert r.status_code == HTTP_OK
    assert r.json()["steps"][0] == "prefiltering"


def test_validate_step(client) -> None:
    """Teste la validation d'une étape via l'API."""
    r = client.post("/steps/household/validate", json=snapshot(complete_application()))
    assert r.status_code == HTTP_OK
    assert r.json() == {
        "blocking": [],
        "warnings": [],
        "invalid_fields": [],
        "valid": True,
        "suggestions": [],
    }


def test_validate_step_blocking(client) -> None:
    """Teste le retour des messages bloquants et des champs à surligner."""
    payload = snapshot(complete_application(housing={}))
    r = client.post("/steps/housing/validate", json=payload)
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["valid"] is False
    assert "housing.rooms" in body["invalid_fields"]


def test_validate_prefiltering_not_eligible_returns_alternatives(client) -> None:
    """Teste que la non-éligibilité renvoie les programmes de logement alternatifs."""
    application = complete_application(
        prefiltering={"lives_3_years": False, "works_3_years": False}
    )
    r = client.post("/steps/prefiltering/validate", json=snapshot(application))
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["valid"] is False
    assert len(body["suggestions"]) == SUGGESTION_COUNT


def _post_raw(client, path: str, payload: dict):
    # NaN et Infinity ne passent que par un corps JSON brut
    return client.post(
        path, content=json.dumps(payload), headers={"Content-Type": "application/json"}
    )


def test_housing_huge_or_nan_rooms_do_not_crash(client) -> None:
    """Teste qu'un nombre de pièces démesuré ou NaN donne un blocage, pas une erreur 500."""
    for rooms in (1e308, float("nan"), float("inf")):
        payload = snapshot(complete_application())
        payload["housing"]["rooms"] = rooms
        r = _post_raw(client, "/steps/housing/validate", payload)
        assert r.status_code == HTTP_OK
        assert r.json()["invalid_fields"] == ["housing.rooms"]


def test_recap_with_nan_housing_values(client) -> None:
    """Teste le récapitulatif avec des pièces et un loyer NaN."""
    payload = snapshot(complete_application())
    payload["housing"]["rooms"] = float("nan")
    payload["housing"]["monthly_rent"] = float("nan")
    r = _post_raw(client, "/recap", payload)
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["household"]["declared_rooms"] is None
    assert body["critical"]["field_errors"] == [
        "Nombre de pièces : format invalide.",
        "Loyer mensuel : valeur invalide.",
    ]
    assert body["can_submit"] is True


def test_validate_unknown_step(client) -> None:
    """Teste l'enveloppe 404 UNKNOWN_STEP avec l'identifiant de requête."""
    r = client.post(
        "/steps/paiement/validate",
        json=snapshot(complete_application()),
        headers={"X-Request-ID": "req-123"},
    )
    assert r.status_code == HTTP_NOT_FOUND
    body = r.json()
    assert body["code"] == "UNKNOWN_STEP"
    assert body["trace_id"] == "req-123"
    assert "household" in body["details"]["known_steps"]
    assert r.headers["X-Request-ID"] == "req-123"


def test_household_summary(client) -> None:
    """Teste la synthèse du ménage."""
    r = client.post("/household/summary", json=snapshot(complete_application()))
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["adults"] == 1
    assert body["max_rooms"] == ROOMS_2_5
    assert body["tax_decision"] == "none"


def test_recap(client) -> None:
    """Teste le récapitulatif d'une demande complète."""
    r = client.post("/recap", json=snapshot(complete_application()))
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["can_submit"] is True
    assert body["critical"] == {"refusals": [], "field_errors": []}
    assert body["missing_docs"]["permit_notice"] is None


def test_submit(client) -> None:
    """Teste un dépôt accepté: référence et horodatage."""
    r = client.post("/submit", json=snapshot(complete_application()))
    assert r.status_code == HTTP_OK
    body = r.json()
    assert REF_PATTERN.match(body["ref"])
    assert body["at"].startswith("2025-06-15T14:30:05")
    assert body["at_display"] == "15.06.2025 14:30"


def test_submit_refused(client) -> None:
    """Teste l'enveloppe 422 APPLICATION_REFUSED avec refus et suggestions."""
    application = complete_application([foreign_adult("Permis F", "2025-06-14")])
    r = client.post("/submit", json=snapshot(application))
    assert r.status_code == HTTP_UNPROCESSABLE_ENTITY
    body = r.json()
    assert body["code"] == "APPLICATION_REFUSED"
    assert body["details"]["refusals"] == ["Permis du preneur·euse invalide."]
    assert len(body["details"]["suggestions"]) == SUGGESTION_COUNT
    assert body["trace_id"] == r.headers["X-Request-ID"]


def test_invalid_payload(client) -> None:
    """Teste qu'un instantané structurellement invalide est rejeté avant le moteur."""
    r = client.post("/recap", json={"members": [{"role": "roi"}]})
    assert r.status_code == HTTP_UNPROCESSABLE_ENTITY
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]["errors"]


def test_unknown_route_uses_envelope(client) -> None:
    """Teste l'enveloppe standard pour une route inexistante."""
    r = client.get("/nulle-part")
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["code"] == "NOT_FOUND"


def test_timing_header(client) -> None:
    """Teste l'en-tête de durée de traitement."""
    r = client.get("/health")
    assert float(r.headers["X-Process-Time-ms"]) >= 0


def test_metrics_endpoint(client) -> None:
    """Teste l'exposition Prometheus des compteurs HTTP et métier."""
    client.post("/submit", json=snapshot(complete_application()))
    r = client.get("/metrics")
    assert r.status_code == HTTP_OK
    text = r.text
    assert "submissions_total" in text
    assert 'route="/submit"' in text


def test_catalog(client) -> None:
    """Teste les tables de référence, avec et sans la voie « travail »."""
    r = client.get("/catalog")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert "Bail résilié" in body["housing_reasons"]
    work = body["income_sources"][0]
    assert work["group"] == "Travail"
    assert work["sources"][0]["required_docs"] == [
        "Contrat de travail",
        "6 dernières fiches de salaire",
    ]

    r = client.get("/catalog", params={"via_work": "true"})
    salaried = r.json()["income_sources"][0]["sources"][0]
    assert "Certificats de salaire des 3 dernières années" in salaried["required_docs"]
