"""
Storage access layer for the docflow backend.

Only the Supabase Storage client lives here. It backs the optional remote
artifact store (ARTIFACT_BACKEND=supabase); nothing in the service keeps
uploads beyond the request that created them.
"""

from .client import get_supabase_client

__all__ = ["get_supabase_client"]
