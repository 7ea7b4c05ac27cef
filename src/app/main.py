import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from app.api.middleware.error_handler import (
    handle_card_management_error,
    handle_generic_error,
    handle_integrity_error,
    handle_validation_error,
)
from app.api.middleware.logging import RequestLoggingMiddleware
from app.api.v1 import router as v1_router
from app.api.v1.health import router as health_router
from app.config import settings
from app.core.exceptions import CardManagementError
from app.core.logging import setup_logging
from app.db.session import AsyncSessionLocal
from app.services.audit import QueuedAuditSink
from app.services.expiry import ExpirySweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    audit_sink = QueuedAuditSink(AsyncSessionLocal, maxsize=settings.audit_queue_size)
    audit_sink.start()
    app.state.audit_sink = audit_sink

    sweeper = None
    if settings.expiry_sweep_enabled:
        sweeper = ExpirySweeper(
            AsyncSessionLocal, audit_sink, settings.expiry_sweep_interval_seconds
        )
        sweeper.start()

    logger.info("Card management service started (env=%s)", settings.app_env)
    yield
    # Shutdown
    if sweeper is not None:
        await sweeper.stop()
    await audit_sink.stop()
    logger.info("Card management service stopped")


def create_app() -> FastAPI:
    setup_logging(settings.log_level, json_format=settings.log_json)

    app = FastAPI(
        title="Card Management Service API",
        description="Bank card issuance, lifecycle management and transfers between own cards",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(CardManagementError, handle_card_management_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
