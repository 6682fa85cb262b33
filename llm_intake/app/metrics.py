"""
Métriques Prometheus pour l'application.

Ce module définit les compteurs HTTP et les compteurs métier du moteur de règles (validations
d'étape, refus, dépôts), ainsi que la route `/metrics` et le middleware de mesure.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter(tags=["metrics"])

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Métriques métier
STEP_VALIDATIONS = Counter(
    "step_validations_total",
    "Total step validations",
    ["step", "outcome"],
)
REFUSALS = Counter(
    "refusals_total",
    "Total refusals raised by the pre-submission check",
    ["rule"],
)
SUBMISSIONS = Counter(
    "submissions_total",
    "Total submission attempts",
    ["outcome"],
)


def route_label(request: Request) -> str:
    """Gabarit de route (`/steps/{step}/validate`) pour borner la cardinalité des labels."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


@metrics_router.get("/metrics")
def metrics():
    """Expose les métriques Prometheus au format texte."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte le nombre de requêtes et la latence par route.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = route_label(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
