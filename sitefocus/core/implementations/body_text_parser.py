"""
Body-text implementation of the Parser interface.

This module extracts the visible text of a page for embedding. It uses
BeautifulSoup (lxml) to drop boilerplate tags and readability-lxml to
get a clean page title.

Example:
    ```python
    parser = BodyTextParser()
    html = "<html><head><title>Example</title></head><body><p>Content ...</p></body></html>"
    assets = parser.parse("https://example.com", html)

    print(assets.title)       # "Example"
    print(assets.clean_text)  # "Content ..."
    ```
"""
import re
from typing import Iterable, Optional
from bs4 import BeautifulSoup
from readability import Document
from sitefocus.config.settings import PARSER_CONFIG
from sitefocus.core.interfaces.parser import Parser, PageAssets

_WHITESPACE = re.compile(r"\s+")

def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()

class BodyTextParser(Parser):
    """
    Extracts title, first H1 and body text from HTML.

    The parser:
    1. Removes script, style, nav, footer, iframe and svg elements
    2. Collapses the remaining <body> text into single spaces
    3. Truncates the text to ``max_chars`` to keep model input bounded
    4. Rejects pages with less than ``min_chars`` of text

    Example:
        ```python
        parser = BodyTextParser(max_chars=1000)
        assets = parser.parse("https://example.com", html)
        ```
    """

    def __init__(self, max_chars: int = PARSER_CONFIG["max_chars"],
                 min_chars: int = PARSER_CONFIG["min_chars"],
                 strip_tags: Optional[Iterable[str]] = None):
        self.max_chars = max_chars
        self.min_chars = min_chars
        self.strip_tags = list(strip_tags) if strip_tags is not None else list(PARSER_CONFIG["strip_tags"])

    @staticmethod
    def _title(html: str, soup: BeautifulSoup) -> str:
        try:
            title = Document(html).short_title().strip()
        except Exception:
            # readability chokes on some fragments; the <title> tag is enough then
            title = ""
        if not title and soup.title and soup.title.string:
            title = soup.title.string.strip()
        return title

    def parse(self, url: str, html: str) -> PageAssets:
        """
        Parse HTML into structured page assets.

        Args:
            url: The URL of the page being parsed
            html: The HTML content to parse

        Returns:
            PageAssets containing the parsed components

        Raises:
            ValueError: if the page has too little text (blocked or empty)

        Example:
            >>> parser = BodyTextParser(min_chars=1)
            >>> html = "<html><body><nav>Menu</nav><p>Content</p></body></html>"
            >>> parser.parse("https://example.com", html).clean_text
            'Content'
        """
        soup = BeautifulSoup(html or "", "lxml")
        title = self._title(html, soup) if html else ""

        h1 = soup.find("h1")
        heading = collapse_whitespace(h1.get_text(" ")) if h1 else ""

        for tag in soup.find_all(self.strip_tags):
            tag.decompose()

        body = soup.body or soup
        text = collapse_whitespace(body.get_text(" "))[: self.max_chars]

        if len(text) < self.min_chars:
            raise ValueError("Insufficient or blocked content")

        return PageAssets(
            url=url,
            clean_text=text,
            title=title,
            heading=heading,
        )
