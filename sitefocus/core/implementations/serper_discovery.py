"""
Serper-backed implementation of the Discovery interface.

Asks the Serper Google search API for ``site:<domain>`` results and
returns the organic result links in ranking order.

Example:
    ```python
    async with aiohttp.ClientSession() as session:
        discovery = SerperDiscovery(session)
        urls = await discovery.discover("example.com")
    ```
"""
import asyncio
import logging
from typing import List, Optional

import aiohttp

from sitefocus.config.settings import SERPER_CONFIG
from sitefocus.core.interfaces.discovery import Discovery
from sitefocus.core.urls import normalize_domain

logger = logging.getLogger(__name__)

class SerperDiscovery(Discovery):
    def __init__(self, session: aiohttp.ClientSession, api_key: Optional[str] = None,
                 num: int = SERPER_CONFIG["num"], url: str = SERPER_CONFIG["url"],
                 timeout: float = SERPER_CONFIG["timeout"]):
        self._session = session
        self._api_key = SERPER_CONFIG["api_key"] if api_key is None else api_key
        self._num = num
        self._url = url
        self._timeout = timeout

    async def discover(self, domain: str) -> List[str]:
        if not self._api_key:
            logger.warning("SERPER_API_KEY is not set, skipping search discovery")
            return []

        body = {"q": f"site:{normalize_domain(domain)}", "num": self._num}
        headers = {"X-API-KEY": self._api_key, "Content-Type": "application/json"}
        try:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            async with self._session.post(self._url, json=body, headers=headers, timeout=timeout) as r:
                if r.status != 200:
                    logger.error("Serper API error %s for %s", r.status, domain)
                    return []
                data = await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("Search discovery failed for %s: %s", domain, e)
            return []

        return [item["link"] for item in data.get("organic", []) if item.get("link")]
