"""Database clients."""

from .supabase import fetch_rows, get_supabase_client

__all__ = ["fetch_rows", "get_supabase_client"]
