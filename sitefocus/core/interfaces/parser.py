"""
Parser interface for the sitefocus project.

This module defines the interface for turning fetched HTML into the text
that gets embedded, and a data class for storing the parsed page assets.

Example:
    ```python
    class MyParser(Parser):
        def parse(self, url: str, html: str) -> PageAssets:
            # Implementation here
            return PageAssets(
                url=url,
                clean_text="Extracted text...",
                title="Page title",
                heading="Main heading"
            )
    ```
"""
from typing import Protocol, NamedTuple

class PageAssets(NamedTuple):
    """
    Container for parsed page data.

    Attributes:
        url: The URL of the parsed page
        clean_text: Visible body text, whitespace collapsed and truncated
        title: The page title
        heading: The first H1 of the page (empty when missing)

    Example:
        >>> assets = PageAssets(
        ...     url="https://example.com",
        ...     clean_text="Main content...",
        ...     title="Example Page",
        ...     heading="Welcome"
        ... )
        >>> assets.title
        'Example Page'
    """
    url: str
    clean_text: str
    title: str
    heading: str = ""

class Parser(Protocol):
    """
    Interface for parsing web pages.

    Implementations should raise ``ValueError`` when the page does not
    carry enough text to be analysed.
    """

    def parse(self, url: str, html: str) -> PageAssets:
        """
        Parse HTML into structured page assets.

        Args:
            url: The URL of the page being parsed
            html: The HTML content to parse

        Returns:
            PageAssets containing the parsed components
        """
        ...
