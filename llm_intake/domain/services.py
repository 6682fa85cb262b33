from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog

from llm_intake.app.metrics import REFUSALS, STEP_VALIDATIONS, SUBMISSIONS
from llm_intake.core.settings import Settings, get_settings
from llm_intake.domain.catalog import build_refusal_suggestions
from llm_intake.domain.critical import (
    REFUSAL_ALL_NO_INCOME,
    REFUSAL_INVALID_PERMIT,
    REFUSAL_MINOR_TENANT,
    REFUSAL_NO_INCOME_DATA,
    run_critical_validations,
)
from llm_intake.domain.entities import Application
from llm_intake.domain.errors import SubmissionRefusedError, UnknownStepError
from llm_intake.domain.household import household_summary
from llm_intake.domain.missing_docs import build_missing_docs
from llm_intake.domain.models import (
    CriticalResult,
    HouseholdSummary,
    RecapReport,
    Reference,
    ValidationResult,
)
from llm_intake.domain.reference import generate_reference
from llm_intake.domain.validators import STEP_VALIDATORS

# Label Prometheus par refus (cardinalité bornée)
_REFUSAL_RULES = {
    REFUSAL_MINOR_TENANT: "minor_tenant",
    REFUSAL_INVALID_PERMIT: "invalid_permit",
    REFUSAL_NO_INCOME_DATA: "no_income_data",
    REFUSAL_ALL_NO_INCOME: "all_without_income",
}

Clock = Callable[[], datetime]


class IntakeService:
    """Service métier de la demande de logement LLM.

    Responsabilités:
    - Exécuter le validateur d'une étape sur un instantané de la demande.
    - Construire le récapitulatif (ménage, documents manquants, contrôle final).
    - Accepter ou refuser le dépôt et produire la référence.

    Le service ne conserve aucun état entre deux appels: chaque méthode reçoit l'instantané
    complet. « Maintenant » provient uniquement de l'horloge injectée.
    """

    def __init__(self, clock: Clock | None = None, settings: Settings | None = None):
        """Initialise le service.

        Paramètres:
        - clock: fonction sans argument renvoyant l'instant courant (défaut: `datetime.now`).
        - settings: configuration (défaut: `get_settings()`).
        """
        self.clock = clock or datetime.now
        self.settings = settings or get_settings()
        self._log = structlog.get_logger(__name__)

    @property
    def steps(self) -> list[str]:
        return list(STEP_VALIDATORS)

    def validate_step(self, step: str, application: Application) -> ValidationResult:
        """Valide une étape du formulaire; lève `UnknownStepError` si l'étape n'existe pas."""
        validator = STEP_VALIDATORS.get(step)
        if validator is None:
            self._log.warning("unknown_step", step=step)
            raise UnknownStepError(step, self.steps)
        result = validator(application, self.clock().date())
        outcome = "valid" if result.valid else "blocked"
        STEP_VALIDATIONS.labels(step=step, outcome=outcome).inc()
        self._log.debug(
            "step_validated",
            step=step,
            outcome=outcome,
            blocking=len(result.blocking),
            warnings=len(result.warnings),
        )
        return result

    def household_summary(self, application: Application) -> HouseholdSummary:
        return household_summary(application, self.clock().date())

    def _test_mode_bypass(self, application: Application) -> bool:
        return application.test_mode and self.settings.ALLOW_TEST_MODE_SUBMISSION

    def _record_refusals(self, critical: CriticalResult) -> None:
        for refusal in critical.refusals:
            REFUSALS.labels(rule=_REFUSAL_RULES.get(refusal, "other")).inc()

    def recap(self, application: Application) -> RecapReport:
        """Récapitulatif avant dépôt.

        Les suggestions de logements alternatifs ne sont jointes qu'en cas de refus.
        """
        today = self.clock().date()
        critical = run_critical_validations(application, today)
        report = RecapReport(
            household=household_summary(application, today),
            missing_docs=build_missing_docs(
                application, today, notice_days=self.settings.PERMIT_NOTICE_DAYS
            ),
            critical=critical,
            suggestions=build_refusal_suggestions() if critical.refusals else [],
            can_submit=critical.submission_allowed or self._test_mode_bypass(application),
        )
        self._log.info(
            "recap_built",
            refusals=len(critical.refusals),
            field_errors=len(critical.field_errors),
            deferred=len(report.missing_docs.deferred),
            can_submit=report.can_submit,
        )
        return report

    def submit(self, application: Application) -> Reference:
        """Dépose la demande si le contrôle final ne produit aucun refus.

        Lève `SubmissionRefusedError` (refus + suggestions) sinon. Les erreurs de champ sont
        journalisées mais ne bloquent pas.
        """
        now = self.clock()
        critical = run_critical_validations(application, now.date())
        if critical.refusals:
            self._record_refusals(critical)
            if not self._test_mode_bypass(application):
                SUBMISSIONS.labels(outcome="refused").inc()
                self._log.info("application_refused", refusals=len(critical.refusals))
                raise SubmissionRefusedError(critical.refusals, build_refusal_suggestions())
            self._log.warning("test_mode_submission_despite_refusals")

        reference = generate_reference(now, prefix=self.settings.REFERENCE_PREFIX)
        SUBMISSIONS.labels(outcome="accepted").inc()
        self._log.info(
            "application_submitted",
            ref=reference.ref,
            field_errors=len(critical.field_errors),
            test_mode=application.test_mode,
        )
        return reference
