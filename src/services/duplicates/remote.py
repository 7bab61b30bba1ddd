# --------------------------- src/services/duplicates/remote.py ----------------------------
"""
Client for the remote duplicate-check service.

The service exposes a single RPC-style operation taking
{loads, threshold, checkExisting} and returning {duplicates, summary}. Its
scoring is authoritative and opaque: results are parsed, never re-scored.
"""

import logging
from typing import Any, List, Optional

import httpx

from config import settings
from src.services.duplicates.models import DuplicateCheckResult

logger = logging.getLogger(__name__)

CHECK_DUPLICATES_PATH = "/loads.checkDuplicates"


class RemoteDuplicateService:

    def __init__(self, base_url: Optional[str] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self._base_url = base_url
        self._client = client

    @property
    def base_url(self) -> Optional[str]:
        url = self._base_url or settings.get_duplicate_service_url()
        return url.rstrip("/") if url else None

    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def probe(self) -> bool:
        """
        Fast pre-flight reachability check against the service root.

        Any HTTP response, including 4xx, counts as reachable; only transport
        errors mean the service is down.
        """
        if not self.is_configured():
            return False
        try:
            await self._request("GET", self.base_url)
            return True
        except httpx.HTTPError as e:
            logger.info(f"Duplicate service unreachable at {self.base_url}: {e}")
            return False

    async def check_duplicates(self, loads: List[Any], threshold: float,
                               check_existing: bool) -> DuplicateCheckResult:
        if not self.is_configured():
            raise RuntimeError("Duplicate service URL not configured")

        response = await self._request(
            "POST",
            f"{self.base_url}{CHECK_DUPLICATES_PATH}",
            json={"loads": loads, "threshold": threshold, "checkExisting": check_existing},
        )
        response.raise_for_status()
        return DuplicateCheckResult.from_dict(response.json(), source="remote")

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            return await client.request(method, url, **kwargs)
