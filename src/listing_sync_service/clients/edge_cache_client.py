"""
Client for purging listing pages from the edge/CDN cache.
"""

import logging
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)


class EdgeCacheClient:
    """Posts purge requests for URLs; a missing endpoint disables purging."""

    def __init__(
        self,
        purge_url: Optional[str],
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        self.purge_url = purge_url
        self.token = token
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.purge_url)

    async def purge(self, urls: List[str]) -> bool:
        """
        Purge the given URLs.

        Returns:
            bool: True if the edge accepted the purge, False if purging is disabled

        Raises:
            httpx.HTTPError: if the purge request fails
        """
        if not self.enabled:
            return False

        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        response = await self.http_client.post(
            self.purge_url, json={"files": urls}, headers=headers
        )
        response.raise_for_status()
        logger.debug(f"Purged {len(urls)} URL(s) from edge cache")
        return True

    async def aclose(self) -> None:
        await self.http_client.aclose()
