"""
Sitemap-backed implementation of the Discovery interface.

Reads ``https://<domain>/sitemap.xml``. When the file is a sitemap index,
the child sitemaps are read as well (one level deep) until ``max_urls``
page URLs are collected.

This module also provides FallbackDiscovery, which tries a chain of
discovery sources and returns the first non-empty answer.

Example:
    ```python
    async with aiohttp.ClientSession() as session:
        discovery = FallbackDiscovery([SerperDiscovery(session), SitemapDiscovery(session)])
        urls = await discovery.discover("example.com")
    ```
"""
import asyncio
import logging
from typing import List, Sequence, Tuple

import aiohttp
from bs4 import BeautifulSoup

from sitefocus.config.settings import SITEMAP_CONFIG
from sitefocus.core.interfaces.discovery import Discovery
from sitefocus.core.urls import normalize_domain

logger = logging.getLogger(__name__)

def parse_sitemap(xml: str) -> Tuple[List[str], List[str]]:
    """
    Split a sitemap document into page URLs and child sitemap URLs.

    Example:
        >>> parse_sitemap('<urlset><url><loc>https://a.com/x</loc></url></urlset>')
        (['https://a.com/x'], [])
    """
    soup = BeautifulSoup(xml, "xml")
    pages = [loc.get_text(strip=True) for url in soup.find_all("url") for loc in url.find_all("loc", limit=1)]
    children = [loc.get_text(strip=True) for sm in soup.find_all("sitemap") for loc in sm.find_all("loc", limit=1)]
    return [p for p in pages if p], [c for c in children if c]

class SitemapDiscovery(Discovery):
    def __init__(self, session: aiohttp.ClientSession, path: str = SITEMAP_CONFIG["path"],
                 max_urls: int = SITEMAP_CONFIG["max_urls"], timeout: float = SITEMAP_CONFIG["timeout"]):
        self._session = session
        self._path = path
        self._max_urls = max_urls
        self._timeout = timeout

    async def _get(self, url: str) -> str:
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        async with self._session.get(url, timeout=timeout) as r:
            if r.status != 200:
                raise aiohttp.ClientResponseError(r.request_info, r.history, status=r.status)
            return await r.text()

    async def discover(self, domain: str) -> List[str]:
        root = f"https://{normalize_domain(domain)}{self._path}"
        try:
            pages, children = parse_sitemap(await self._get(root))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("No sitemap at %s: %s", root, e)
            return []

        for child in children:
            if len(pages) >= self._max_urls:
                break
            try:
                child_pages, _ = parse_sitemap(await self._get(child))
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning("Skipping child sitemap %s: %s", child, e)
                continue
            pages.extend(child_pages)

        return pages[: self._max_urls]

class FallbackDiscovery(Discovery):
    """Returns the result of the first source that finds any URL."""

    def __init__(self, sources: Sequence[Discovery]):
        self.sources = list(sources)

    async def discover(self, domain: str) -> List[str]:
        for source in self.sources:
            urls = await source.discover(domain)
            if urls:
                logger.info("%s found %d URLs for %s", type(source).__name__, len(urls), domain)
                return urls
        return []
