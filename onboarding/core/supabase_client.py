import logging
from supabase import create_client, Client
from onboarding.core.config import settings

logger = logging.getLogger(__name__)


def get_supabase_client() -> Client:
    """Create and return a Supabase client using values from `settings`.

    Raises a clear RuntimeError if required configuration is missing.
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_SERVICE_ROLE or settings.SUPABASE_ANON_PUBLIC

    if not supabase_url:
        logger.error("SUPABASE_URL is not configured")
        raise RuntimeError("Supabase configuration missing: set SUPABASE_URL environment variable")

    if not supabase_key:
        logger.error("No Supabase key configured (SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC)")
        raise RuntimeError("Supabase configuration missing: set SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC environment variable")

    if settings.SUPABASE_SERVICE_ROLE is None:
        logger.warning("SUPABASE_SERVICE_ROLE not set; falling back to SUPABASE_ANON_PUBLIC (reduced privileges)")

    masked_key = f"{supabase_key[:4]}...{supabase_key[-4:]}" if len(supabase_key) > 8 else "<hidden>"
    logger.debug("Using Supabase URL host: %s and key: %s", supabase_url.split("://")[-1], masked_key)

    return create_client(supabase_url, supabase_key)
