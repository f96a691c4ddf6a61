"""
Interface for web content fetching.

This module defines the interface for fetching page HTML before it is
turned into text and embedded. It provides a protocol for implementing
different fetching strategies (e.g., a scraping API, plain HTTP, mock)
and a data class for fetch results.

Example:
    ```python
    class MyFetcher(Fetcher):
        async def fetch(self, url: str) -> FetchResult:
            # Implementation here
            return FetchResult(
                url=url,
                content="<html>...</html>",
                status_code=200,
                content_type="text/html"
            )
    ```
"""
from typing import Protocol, Optional
from dataclasses import dataclass

@dataclass
class FetchResult:
    """
    Result of a fetch operation.

    Fetchers never raise for network problems; they report them through
    the ``error`` attribute so callers can skip the URL and move on.

    Attributes:
        url: The URL that was fetched
        content: The fetched content (HTML, text, etc.)
        status_code: HTTP status code or equivalent
        content_type: MIME type of the content (optional)
        error: Error message if the fetch failed (optional)

    Example:
        >>> result = FetchResult(
        ...     url="https://example.com",
        ...     content="<html>Hello</html>",
        ...     status_code=200,
        ...     content_type="text/html"
        ... )
        >>> result.ok
        True
    """
    url: str
    content: str
    status_code: int
    content_type: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300

class Fetcher(Protocol):
    """
    Protocol for fetching web content.

    Example:
        ```python
        class HTTPFetcher(Fetcher):
            async def fetch(self, url: str) -> FetchResult:
                async with self.session.get(url) as response:
                    return FetchResult(
                        url=url,
                        content=await response.text(),
                        status_code=response.status,
                        content_type=response.headers.get("content-type")
                    )
        ```
    """

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch content from a URL.

        Args:
            url: The URL to fetch content from

        Returns:
            FetchResult containing the fetched content and metadata
        """
        ...
