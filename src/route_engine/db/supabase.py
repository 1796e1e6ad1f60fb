"""Supabase client for catalog reads and request persistence."""

import logging
from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the cached Supabase client, or None when credentials are missing.

    Creating the client does not test the connection; queries may still fail
    with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.info("Supabase not configured; catalog and requests stay local")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Failed to create Supabase client: {e}")
        return None


def fetch_rows(client: Client, table: str) -> list[dict[str, Any]]:
    """Select every row of a catalog table."""
    response = client.table(table).select("*").execute()
    return response.data or []
