"""
Interface for candidate URL discovery.

A discovery source returns an ordered list of URLs for a domain, for
example from a search API or from the site's sitemap.
"""
from typing import Protocol, List

class Discovery(Protocol):
    """Protocol for discovering candidate URLs of a domain."""

    async def discover(self, domain: str) -> List[str]:
        """
        Return candidate URLs for ``domain``.

        Implementations return an empty list instead of raising when the
        provider is unreachable or not configured.
        """
        ...
