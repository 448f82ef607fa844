"""
Singleton Supabase client.
All services share this single instance instead of creating their own.
"""

import logging
from typing import Optional

from supabase import create_client, Client

from app.config import Settings

logger = logging.getLogger(__name__)

_client: Optional[Client] = None


def get_supabase(settings: Optional[Settings] = None) -> Optional[Client]:
    """Returns the shared Supabase client (service role), creating it on first call."""
    global _client
    if _client is not None:
        return _client

    settings = settings or Settings.from_env()
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not found in env")
        return None

    _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client


def first_row(response) -> Optional[dict]:
    """First row of a supabase-py response, or None."""
    data = getattr(response, "data", None)
    if isinstance(data, list):
        return data[0] if data else None
    return data or None
