# --------------------------- src/services/duplicates/existing.py ----------------------------
"""
Previously posted loads to compare new uploads against.

The duplicate checker only reads from here; it never writes or deletes.
Acting on a recommendation is the caller's job.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from config import settings

logger = logging.getLogger(__name__)


class ExistingLoadSource:
    """Anything that can list already-posted load records (each with an id)."""

    async def fetch_existing(self) -> List[Dict[str, Any]]:
        raise NotImplementedError


class StaticLoadSource(ExistingLoadSource):
    """In-memory source, for callers that already hold the posted loads."""

    def __init__(self, loads: List[Dict[str, Any]]):
        self._loads = list(loads)

    async def fetch_existing(self) -> List[Dict[str, Any]]:
        return list(self._loads)


class SupabaseLoadSource(ExistingLoadSource):
    """
    Reads the most recent rows of the loads table.

    ARGS:
        client: Optional pre-built Supabase client
        table: Table name
        limit: Maximum number of rows compared per check; the local check is
            O(candidates x existing)
    """

    def __init__(self, client: Optional[Client] = None, table: str = "loads",
                 limit: int = settings.EXISTING_LOADS_LIMIT):
        if client is None:
            supabase_url = settings.SUPABASE_URL
            supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY
            if not supabase_url or not supabase_key:
                raise ValueError("Supabase configuration required")
            client = create_client(supabase_url, supabase_key)

        self.supabase: Client = client
        self.table = table
        self.limit = limit

    async def fetch_existing(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._fetch)

    def _fetch(self) -> List[Dict[str, Any]]:
        response = (
            self.supabase.table(self.table)
            .select("*")
            .order("created_at", desc=True)
            .limit(self.limit)
            .execute()
        )
        rows = response.data if response.data else []
        logger.info(f"Fetched {len(rows)} existing loads for duplicate comparison")
        return rows
