"""
Application principale FastAPI.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, timing, Prometheus)
- Brancher les enveloppes d'erreur
- Monter les routers (santé, étapes, récapitulatif, catalogue, métriques)
"""

from __future__ import annotations

from fastapi import FastAPI

from llm_intake.api.errors import register_error_handlers
from llm_intake.api.routes_catalog import router as catalog_router
from llm_intake.api.routes_health import router as health_router
from llm_intake.api.routes_recap import router as recap_router
from llm_intake.api.routes_steps import router as steps_router
from llm_intake.app.metrics import PrometheusMiddleware, metrics_router
from llm_intake.core.container import container
from llm_intake.core.logging import setup_logging
from llm_intake.middlewares.request_id import RequestIDMiddleware
from llm_intake.middlewares.timing import TimingMiddleware


def create_app() -> FastAPI:
    """Construit et retourne l'application FastAPI prête à l'usage."""
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware)
    # Ajouté en dernier: exécuté en premier, le trace_id est posé avant tout le reste
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(steps_router)
    app.include_router(recap_router)
    app.include_router(catalog_router)
    app.include_router(metrics_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=container.settings.APP_HOST, port=container.settings.APP_PORT)
