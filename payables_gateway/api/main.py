"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from payables_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from payables_gateway.api.v1 import installments, obligations, reconciliations, suppliers, undo
from payables_gateway.config import settings
from payables_gateway.infrastructure.database.session import init_db
from payables_gateway.infrastructure.observability.logging import setup_logging
from payables_gateway.services.reconciliation import ReconciliationRegistry
from payables_gateway.services.undo import UndoJournal

setup_logging(settings.log_level)

ROUTERS = (
    (obligations.router, "obligations"),
    (installments.router, "installments"),
    (reconciliations.router, "reconciliations"),
    (undo.router, "undo"),
    (suppliers.router, "suppliers"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """
    Build the application with its own undo journal and reconciliation registry.

    Both live in app.state and are lost when the process stops.
    """
    app = FastAPI(
        title="Payables Gateway",
        description="Payable scheduling, bank statement reconciliation and undo journal",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.undo_journal = UndoJournal()
    app.state.reconciliations = ReconciliationRegistry()

    # last added runs first
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check(request: Request):
        return {
            "status": "ok",
            "service": settings.service_name,
            "undo_actions": len(request.app.state.undo_journal),
        }

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
