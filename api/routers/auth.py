"""
Authentication API Endpoints.

Thin wrappers over Supabase Auth. Login and password reset are open; logout
revokes the caller's own token. No route stores a session on the shared
client.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response

from api.dependencies import get_services, require_access_token, require_user
from api.models import LoginRequest, LoginResponse, PasswordResetRequest
from services.container import Services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse, summary="Sign In")
def login(request: LoginRequest, services: Services = Depends(get_services)):
    """
    Exchange email and password for a session.

    Use the returned `access_token` as `Authorization: Bearer <token>` on
    every other `/api/v1` route.
    """
    try:
        result = services.auth.issue_session(request.email, request.password)
    except Exception as e:
        logger.warning("Sign in failed", extra={"email": request.email, "error": str(e)})
        raise HTTPException(status_code=401, detail="Invalid email or password")

    session = getattr(result, "session", None)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user = getattr(result, "user", None)
    return LoginResponse(
        access_token=session.access_token,
        refresh_token=getattr(session, "refresh_token", None),
        user_id=str(user.id) if user is not None else None,
        email=getattr(user, "email", None),
    )


@router.post("/auth/logout", status_code=204, summary="Sign Out")
def logout(
    access_token: str = Depends(require_access_token),
    user: Any = Depends(require_user),
    services: Services = Depends(get_services),
):
    """Revoke the session behind the bearer token. Other users are unaffected."""
    services.auth.revoke_token(access_token)
    return Response(status_code=204)


@router.post("/auth/password-reset", status_code=202, summary="Request Password Reset")
def password_reset(request: PasswordResetRequest, services: Services = Depends(get_services)):
    """Send a password reset email."""
    services.auth.reset_password(request.email, request.redirect_to)
    return {"status": "accepted"}
