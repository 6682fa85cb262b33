"""Configuration de test pour pytest avec gestion des chemins.

Ajoute la racine du projet au sys.path et fournit un service et un client HTTP dont l'horloge
est figée sur `tests.fakes.NOW`.
"""

import os
import sys
from unittest.mock import patch

import pytest

# Ensure project root is on sys.path so that
# imports like `from llm_intake...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from llm_intake.core.settings import Settings  # noqa: E402
from llm_intake.domain.services import IntakeService  # noqa: E402
from tests.fakes import fixed_clock  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def service(settings: Settings) -> IntakeService:
    return IntakeService(clock=fixed_clock, settings=settings)


@pytest.fixture
def client():
    """Client de test sur l'application, horloge du service figée."""
    from fastapi.testclient import TestClient  # noqa: PLC0415

    from llm_intake.app.main import app  # noqa: PLC0415
    from llm_intake.core.container import container  # noqa: PLC0415

    with patch.object(container.intake, "clock", fixed_clock):
        yield TestClient(app)
