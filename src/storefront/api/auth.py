"""Shared-secret check for back-office routes."""

import hmac

from fastapi import Depends, Header, HTTPException, Request

from storefront.config import StoreSettings, get_settings


def require_admin_key(
    x_admin_key: str | None = Header(default=None),
    settings: StoreSettings = Depends(get_settings),
) -> None:
    if not settings.admin_key or not x_admin_key:
        raise HTTPException(status_code=401, detail="Admin key required")
    if not hmac.compare_digest(x_admin_key, settings.admin_key):
        raise HTTPException(status_code=401, detail="Invalid admin key")


def get_gateway(request: Request):
    """The Swish gateway the application was started with."""
    return request.app.state.gateway
