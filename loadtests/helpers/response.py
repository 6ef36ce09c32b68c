"""Response error extraction for load test observability.

Parses storefront API error responses into human-readable messages.
Handles three response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Error handlers (400/404/422/502/503): {"status": "error", "error": "msg" | {...}}
- Form errors returned as 200: {"status": "error", "errors": {"field": ["msg"]}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response."""
    try:
        body = response.json()
    except ValueError:
        # Not JSON, return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if "detail" in body and isinstance(body["detail"], list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    for key in ("error", "errors"):
        if key in body:
            error = body[key]
            if isinstance(error, dict):
                return " | ".join(f"{k}: {v}" for k, v in error.items())
            return str(error)

    return str(body)[:300]


def is_error(response: Response) -> bool:
    """Form errors come back with 200, so the envelope status has to be checked too."""
    if response.status_code >= 400:
        return True
    try:
        return response.json().get("status") == "error"
    except ValueError:
        return True
