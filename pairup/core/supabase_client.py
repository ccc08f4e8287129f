# pairup/core/supabase_client.py
from functools import lru_cache

from supabase import create_client, Client
from supabase.client import ClientOptions

from pairup.core.config import get_settings

settings = get_settings()


def _client_options() -> ClientOptions:
    """
    Shared client options.

    Storage and PostgREST calls are capped at the submission timeout so a
    hung upload surfaces as a timeout instead of blocking the request.
    """
    timeout = int(settings.SUBMISSION_TIMEOUT_SECONDS)
    return ClientOptions(
        storage_client_timeout=timeout,
        postgrest_client_timeout=timeout,
    )


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - sign-up with email/password

    The OAuth code exchange and the consent metadata update use
    `supabase_request_client()` instead.

    Note: This client still respects RLS.
    """
    return create_client(
        settings.SUPABASE_URL, settings.SUPABASE_KEY, options=_client_options()
    )


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - uploading to / deleting from storage buckets

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        options=_client_options(),
    )


def supabase_request_client() -> Client:
    """
    Create a fresh anon-key client for one request.

    Auth flows such as the OAuth code exchange store a user session on the
    client, so they must not share the cached public client.
    """
    return create_client(
        settings.SUPABASE_URL, settings.SUPABASE_KEY, options=_client_options()
    )
