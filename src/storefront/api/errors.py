"""Translate domain and infrastructure errors into HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from storefront.exceptions import EnrichmentFailure, GatewayError, PersistenceError

logger = structlog.get_logger(__name__)


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"status": "error", "error": exc.messages})


async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    return JSONResponse(status_code=404, content={"status": "error", "error": str(exc)})


async def enrichment_failure_handler(request: Request, exc: EnrichmentFailure):
    return JSONResponse(status_code=422, content={"status": "error", "error": {"missing": exc.missing_slugs}})


async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Storage failure", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"status": "error", "error": "Storage unavailable"})


async def gateway_error_handler(request: Request, exc: GatewayError):
    return JSONResponse(status_code=502, content={"status": "error", "error": exc.first})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)

    # Registered after Protean's defaults so the storefront envelope wins
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(EnrichmentFailure, enrichment_failure_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
