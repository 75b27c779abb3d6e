"""
Adapters package for the Gateway Service.

Wraps the external data store behind a small async interface that maps
every backend failure to ``DataStoreError``.
"""

from .supabase_client import SupabaseClient

__all__ = [
    "SupabaseClient",
]
