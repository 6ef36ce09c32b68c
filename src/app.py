"""Storefront FastAPI application.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.channel import build_mailer, configure_mailer
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.gateway import build_gateway
from storefront.utils.logging import add_context, clear_context

# PROTEAN_ENV picks the domain.toml overlay: "production" hands event
# handlers to the Engine (src/server.py), everything else runs them inline.
storefront.init()

from storefront.api import register_error_handlers, routers  # noqa: E402

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.gateway = build_gateway(settings)
    configure_mailer(build_mailer(settings))
    logger.info(
        "Storefront started",
        env=settings.env,
        gateway=type(app.state.gateway).__name__,
        swish_configured=settings.swish_configured,
        smtp_configured=settings.smtp_configured,
    )
    yield
    close = getattr(app.state.gateway, "close", None)
    if close is not None:
        close()


app = FastAPI(title="Storefront API", description="Baskets, orders and Swish payments", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "X-Admin-Key"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Run every request inside the storefront domain context."""
    add_context(method=request.method, path=request.url.path)
    try:
        with storefront.domain_context():
            return await call_next(request)
    finally:
        clear_context()


register_error_handlers(app)

for router in routers:
    app.include_router(router)


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})
