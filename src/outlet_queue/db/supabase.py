"""Supabase client construction for the Python backend."""

import logging

from supabase import Client, ClientOptions, create_client

from ..config import Settings
from ..errors import RepositoryError

logger = logging.getLogger(__name__)


def create_supabase_client(config: Settings) -> Client:
    """Build a Supabase client for the lifetime of one application instance.

    The caller owns the returned handle; nothing is cached at module level.
    Note: this does not test the connection - actual queries may fail with network errors.
    """
    if not config.supabase_url or not config.supabase_key:
        raise RepositoryError(
            "Supabase credentials not configured. Set OQ_SUPABASE_URL and OQ_SUPABASE_KEY."
        )

    options = ClientOptions(postgrest_client_timeout=config.repository_timeout_seconds)
    try:
        return create_client(config.supabase_url, config.supabase_key, options=options)
    except Exception as exc:
        logger.error(f"Failed to create Supabase client: {exc}")
        raise RepositoryError(f"Failed to create Supabase client: {exc}") from exc
