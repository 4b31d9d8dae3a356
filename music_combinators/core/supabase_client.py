# music_combinators/core/supabase_client.py
"""
Supabase clients, one per key.

  - anon key:         Supabase Auth sign-up / sign-in (RLS applies)
  - service role key: media bucket uploads and deletes (bypasses RLS)

The service role key must never leave the backend.
"""

from functools import lru_cache

from supabase import Client, create_client

from music_combinators.core.config import get_settings


@lru_cache
def supabase_public() -> Client:
    settings = get_settings()
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


@lru_cache
def supabase_admin() -> Client:
    """
    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    settings = get_settings()
    service_key = settings.SUPABASE_SERVICE_ROLE_KEY
    if not service_key:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY is required for media storage")
    return create_client(settings.SUPABASE_URL, service_key)
