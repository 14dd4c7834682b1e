"""
Shared dependencies for the API routers.

Tests replace `get_services` and `require_user` through
`app.dependency_overrides`.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.container import Services, build_services

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_services() -> Services:
    """Services wired around the shared Supabase client."""
    return build_services()


def require_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    """The raw bearer token of the request."""

    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return credentials.credentials


def require_user(
    access_token: str = Depends(require_access_token),
    services: Services = Depends(get_services),
) -> Any:
    """Reject requests without a valid Supabase access token."""

    try:
        user = services.auth.get_user_for_token(access_token)
    except Exception as exc:
        logger.warning("Access token rejected", extra={"error": str(exc)})
        user = None

    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired access token")
    return user
