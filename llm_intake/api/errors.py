"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Toutes les erreurs renvoyées par l'API partagent la même enveloppe
`{code, message, trace_id, details}`. Les exceptions métier du service (étape inconnue, dépôt
refusé) sont traduites ici, sans que les routes aient à les intercepter.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from llm_intake.core.http_constants import (
    CODE_APPLICATION_REFUSED,
    CODE_UNKNOWN_STEP,
    ERROR_CODES,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_UNPROCESSABLE_ENTITY,
)
from llm_intake.domain.errors import SubmissionRefusedError, UnknownStepError

log = structlog.get_logger(__name__)


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(status_code=status_code, content=asdict(envelope))


def extract_trace_id(request: Request) -> str | None:
    """Identifiant de trace: en-tête `X-Trace-ID`, sinon celui posé par le middleware."""
    trace_id = request.headers.get("X-Trace-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "trace_id", None)


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    trace_id = extract_trace_id(request)
    code = ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    log.warning("http_exception", code=code, status_code=exc.status_code, trace_id=trace_id)
    return create_error_response(exc.status_code, code, str(exc.detail), trace_id)


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Instantané structurellement invalide (types, valeurs hors énumération)."""
    trace_id = extract_trace_id(request)
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    log.info("request_validation_error", errors=len(errors), trace_id=trace_id)
    return create_error_response(
        HTTP_UNPROCESSABLE_ENTITY,
        ERROR_CODES[HTTP_UNPROCESSABLE_ENTITY],
        "Requête invalide",
        trace_id,
        {"errors": errors},
    )


def handle_unknown_step(request: Request, exc: UnknownStepError) -> JSONResponse:
    return create_error_response(
        HTTP_NOT_FOUND,
        CODE_UNKNOWN_STEP,
        str(exc),
        extract_trace_id(request),
        {"step": exc.step, "known_steps": exc.known},
    )


def handle_submission_refused(request: Request, exc: SubmissionRefusedError) -> JSONResponse:
    return create_error_response(
        HTTP_UNPROCESSABLE_ENTITY,
        CODE_APPLICATION_REFUSED,
        str(exc),
        extract_trace_id(request),
        {
            "refusals": exc.refusals,
            "suggestions": [s.model_dump() for s in exc.suggestions],
        },
    )


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    trace_id = extract_trace_id(request)
    log.error(
        "unexpected_error",
        trace_id=trace_id,
        exception_type=type(exc).__name__,
        exc_info=exc,
    )
    return create_error_response(
        HTTP_INTERNAL_SERVER_ERROR,
        ERROR_CODES[HTTP_INTERNAL_SERVER_ERROR],
        "Erreur inattendue",
        trace_id,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Branche toutes les enveloppes d'erreur sur l'application."""
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(UnknownStepError, handle_unknown_step)
    app.add_exception_handler(SubmissionRefusedError, handle_submission_refused)
    app.add_exception_handler(Exception, handle_generic_exception)
