"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, horloge, service de dépôt) et expose un singleton
`container` utilisé par les routes.
"""

from datetime import datetime

from llm_intake.core.settings import get_settings
from llm_intake.domain.services import IntakeService


class Container:
    def __init__(self, clock=None):
        self.settings = get_settings()
        # Horloge unique de l'application; les tests la remplacent par une date fixe
        self.clock = clock or datetime.now
        self.intake = IntakeService(clock=self.clock, settings=self.settings)


container = Container()
