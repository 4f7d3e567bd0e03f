# appdiscovery/db/supabase_client.py
from typing import Any, Optional

from supabase import create_client

from appdiscovery.core.config import get_config
from appdiscovery.core.logging import get_logger

logger = get_logger(__name__)

_client: Optional[Any] = None


def _init_client():
    """
    Lazily create a singleton Supabase client.

    Returns:
        client instance or None if disabled / misconfigured.
    """
    global _client
    if _client is not None:
        return _client

    config = get_config()

    if not config.supabase_enabled:
        logger.info("Supabase disabled via SUPABASE_ENABLED")
        return None

    if not config.supabase_url or not config.supabase_service_role_key:
        logger.warning("Supabase disabled: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY missing")
        return None

    _client = create_client(config.supabase_url, config.supabase_service_role_key)
    logger.info(f"Supabase client initialized for {config.supabase_url}")
    return _client


def get_supabase():
    """Convenience wrapper used by other modules."""
    return _init_client()


def is_supabase_enabled() -> bool:
    """True if a client can be created and used."""
    return _init_client() is not None
