"""
Supabase client factory for the remote artifact backend.

Only used when ARTIFACT_BACKEND=supabase. The client is built from the
service key in settings; uploads are written under a per-request prefix and
removed before the request finishes, so no user-scoped session is involved.
"""

import logging

from supabase import Client, create_client

from docflow.config import settings

logger = logging.getLogger(__name__)


def get_supabase_client() -> Client:
    """
    Create a Supabase client for Storage operations.

    Returns:
        A Supabase client authenticated with SUPABASE_KEY.

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_KEY is not configured.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_KEY must be set to use the supabase artifact backend."
        )

    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_KEY,
    )

    logger.debug("Created Supabase client for artifact storage")

    return client
