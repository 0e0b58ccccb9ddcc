"""
API key check applied to every `/api` route.

The key may be sent in the `x-api-key` header or the `apikey` query parameter.
"""

from __future__ import annotations

import logging
import os
import secrets

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


def get_api_key(request: Request) -> str | None:
    """
    Extract the API key from the request.

    Returns None if no key is present.
    """
    key = request.headers.get("x-api-key") or request.query_params.get("apikey")
    return key or None


async def require_api_key(request: Request) -> None:
    """
    Dependency that rejects requests without the configured API key.

    When API_KEY is not configured every request is rejected.
    """
    expected = (os.getenv("API_KEY") or "").strip()
    if not expected:
        logger.warning("API_KEY is not configured; rejecting %s %s", request.method, request.url.path)

    provided = get_api_key(request)
    if not expected or not provided or not secrets.compare_digest(provided, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
