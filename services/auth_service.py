"""
Authentication wrapper over Supabase Auth.

The persistence layer does not depend on identity; callers only need to know
that a request comes from a signed-in user. Errors raised by the auth client
propagate unchanged.

Two sets of operations:
- `sign_in` / `sign_out` / `subscribe_to_auth_changes` keep a session on the
  wrapped client. They suit a single-user process such as a script.
- `issue_session` / `revoke_token` / `get_user_for_token` never touch the
  wrapped client's session. The API uses only these, because its client is
  shared by every request.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

SessionCallback = Callable[[Optional[Any]], None]
ClientFactory = Callable[[], Any]


class AuthService:
    def __init__(self, client: Any = None, *, session_client_factory: Optional[ClientFactory] = None) -> None:
        self._client = client
        self._session_client_factory = session_client_factory

    @property
    def client(self) -> Any:
        if self._client is None:
            from repositories.client import get_supabase

            self._client = get_supabase()
        return self._client

    def _session_client(self) -> Any:
        if self._session_client_factory is not None:
            return self._session_client_factory()
        from repositories.client import create_session_client

        return create_session_client()

    def sign_in(self, email: str, password: str) -> Any:
        """
        Sign in with email and password.

        Returns:
            The auth response (user + session)
        """

        response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        logger.info("User signed in", extra={"email": email})
        return response

    def sign_out(self) -> None:
        self.client.auth.sign_out()
        logger.info("User signed out")

    def issue_session(self, email: str, password: str) -> Any:
        """
        Sign in on a throwaway client and hand the session back to the caller.

        The shared client keeps no session, so one user's sign-in never
        changes what other requests run as.
        """

        response = self._session_client().auth.sign_in_with_password({"email": email, "password": password})
        logger.info("Session issued", extra={"email": email})
        return response

    def revoke_token(self, access_token: str) -> None:
        """Revoke the sessions behind one access token (admin API, server key)."""

        self.client.auth.admin.sign_out(access_token)
        logger.info("Session revoked")

    def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Send a password reset email."""

        options = {"redirect_to": redirect_to} if redirect_to else {}
        self.client.auth.reset_password_for_email(email, options)
        logger.info("Password reset requested", extra={"email": email})

    def subscribe_to_auth_changes(self, callback: SessionCallback) -> Callable[[], None]:
        """
        Call `callback` with the current session (or None) now and on every auth state change.

        Returns:
            A function that cancels the subscription
        """

        subscription = self.client.auth.on_auth_state_change(lambda event, session: callback(session))
        callback(self.client.auth.get_session())
        return subscription.unsubscribe

    def get_current_user(self) -> Optional[Any]:
        session = self.client.auth.get_session()
        return getattr(session, "user", None) if session else None

    def is_authenticated(self) -> bool:
        return self.get_current_user() is not None

    def get_user_for_token(self, access_token: str) -> Optional[Any]:
        """Resolve a bearer access token to its user, or None when the token is not valid."""

        response = self.client.auth.get_user(access_token)
        return getattr(response, "user", None) if response else None


__all__ = ["AuthService"]
