"""
Supabase client initialization.

This module contains *only* the connection setup and exposes a cached
`get_supabase()` factory for other repository modules to use. The client is
created on first use so that importing the API (or running the tests) does
not require storage credentials.

Environment variables required:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from functools import lru_cache

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from services.settings import get_settings


@lru_cache()
def get_supabase() -> Client:
    """Return the process-wide Supabase client, creating it on first call."""

    settings = get_settings()

    if not settings.supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not settings.supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return create_client(settings.supabase_url, settings.supabase_key)


__all__ = ["get_supabase"]
