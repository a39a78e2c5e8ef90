"""
Supabase client construction.

This module contains *only* the database connection setup plus the helper that
recognises unique-constraint violations, which both insert-if-absent stores
rely on.
"""

from __future__ import annotations

from typing import Any

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config.settings import Settings

# PostgreSQL SQLSTATE for unique_violation.
UNIQUE_VIOLATION_CODE: str = "23505"


def create_supabase_client(settings: Settings) -> Client:
    """
    Create a Supabase client from settings.

    Raises:
        RuntimeError: if SUPABASE_URL or SUPABASE_KEY is not configured
    """

    url, key = settings.require_supabase_credentials()
    return create_client(url, key)


def is_unique_violation(error: Any) -> bool:
    """True if a PostgREST error (exception or response error) is a duplicate-key failure."""

    if error is None:
        return False
    code = getattr(error, "code", None)
    if code is None and isinstance(error, dict):
        code = error.get("code")
    if str(code) == UNIQUE_VIOLATION_CODE:
        return True
    message = str(getattr(error, "message", None) or error)
    return "duplicate key" in message or "already exists" in message


__all__ = ["UNIQUE_VIOLATION_CODE", "create_supabase_client", "is_unique_violation"]
