"""
ScraperAPI-backed implementation of the Fetcher interface.

This module fetches page HTML through the ScraperAPI proxy:
• Sends GET requests to the ScraperAPI endpoint with the target URL
• Retries failed requests with exponential backoff
• Never raises; failures are reported in FetchResult.error

Example:
    ```python
    async with aiohttp.ClientSession() as session:
        fetcher = ScraperApiFetcher(session)
        result = await fetcher.fetch("https://example.com")
        if result.ok:
            print("HTML:", result.content[:100])
    ```
"""

from __future__ import annotations
import aiohttp, asyncio
import logging
from typing import Optional
from sitefocus.config.settings import SCRAPER_CONFIG
from sitefocus.core.interfaces.fetcher import Fetcher, FetchResult

logger = logging.getLogger(__name__)

class ScrapeError(Exception):
    """Raised internally when the scraping API gives up on a URL."""

class ScraperApiFetcher(Fetcher):
    def __init__(self, session: aiohttp.ClientSession, api_key: Optional[str] = None,
                 base_url: str = SCRAPER_CONFIG["base_url"], render: bool = SCRAPER_CONFIG["render"],
                 timeout: float = SCRAPER_CONFIG["timeout"], max_retries: int = SCRAPER_CONFIG["retry_attempts"],
                 backoff: float = 1.0, sleep=asyncio.sleep):
        self._session = session
        self._api_key = SCRAPER_CONFIG["api_key"] if api_key is None else api_key
        self._base_url = base_url
        self._render = render
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._backoff = backoff
        self._sleep = sleep

    def _params(self, url: str) -> dict:
        return {
            "api_key": self._api_key,
            "url": url,
            "render": "true" if self._render else "false",
        }

    async def _scrape_url(self, url: str) -> str:
        """Fetch a single URL through ScraperAPI with retry logic."""
        last_error = ""
        for attempt in range(self._max_retries):
            try:
                timeout = aiohttp.ClientTimeout(total=self._timeout, connect=10)
                async with self._session.get(self._base_url, params=self._params(url), timeout=timeout) as r:
                    if r.status == 200:
                        return await r.text()
                    error_text = await r.text()
                    # 4xx other than rate limiting will not improve on retry
                    if 400 <= r.status < 500 and r.status != 429:
                        raise ScrapeError(f"Scraper error {r.status}: {error_text[:200]}")
                    logger.warning("Scraper error %s for %s (attempt %d)", r.status, url, attempt + 1)
                    last_error = f"Scraper error {r.status}"

            except asyncio.TimeoutError:
                logger.warning("Timeout on attempt %d for %s", attempt + 1, url)
                last_error = f"Request timeout after {attempt + 1} attempts"

            except aiohttp.ClientError as e:
                logger.warning("Attempt %d failed for %s: %s", attempt + 1, url, e)
                last_error = str(e)

            if attempt < self._max_retries - 1:
                await self._sleep(self._backoff * 2 ** attempt)  # Exponential backoff

        raise ScrapeError(f"All {self._max_retries} attempts failed for {url}: {last_error}")

    async def fetch(self, url: str) -> FetchResult:
        """Implement the Fetcher interface fetch method."""
        if not self._api_key:
            return FetchResult(url=url, content="", status_code=500, error="Missing SCRAPERAPI_KEY")

        try:
            html = await self._scrape_url(url)
            return FetchResult(
                url          = url,
                content      = html,
                status_code  = 200,
                content_type = "text/html",
            )

        except ScrapeError as e:
            return FetchResult(
                url=url,
                content="",
                status_code=502,
                error=f"Scrape failed: {e}"
            )
