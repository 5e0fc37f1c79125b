from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.api import handle_reconciliation_error, root_router, router
from errors import ReconciliationError
from logging_config import configure_logging
from services.reconciliation import ReconciliationService, build_reconciliation_service


def create_app(service: Optional[ReconciliationService] = None) -> FastAPI:
    """Build the application; ``service`` overrides the settings-driven wiring."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = service or build_reconciliation_service()
        app.state.service = active
        try:
            yield
        finally:
            await active.aclose()

    app = FastAPI(
        title="Indoor Farm Monitor",
        description="Reconciles tray sensor telemetry against plant targets and stores the results.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(ReconciliationError, handle_reconciliation_error)
    app.include_router(router)
    app.include_router(root_router)
    return app


app = create_app()
