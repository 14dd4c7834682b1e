"""
Supabase client initialization.

This module contains *only* the connection setup. Repositories and the auth
wrapper call `get_supabase()`; the client is built on first use so importing
the package never requires credentials.

Environment variables required (see config.py):
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client

from config import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the shared Supabase client, creating it on first call."""

    url, key = get_settings().require_supabase_credentials()
    return create_client(url, key)


def create_session_client() -> Client:
    """
    Build a short-lived client for one sign-in.

    A sign-in stores its session on the client that performed it, so it must
    never happen on the shared client returned by `get_supabase()`.
    """

    url, key = get_settings().require_supabase_credentials()
    return create_client(url, key)


__all__ = ["get_supabase", "create_session_client", "Client"]
