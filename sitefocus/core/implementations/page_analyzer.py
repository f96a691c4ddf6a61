"""
Page analyzer: the embedding source used by the batch orchestrator.

For one URL the analyzer:
1. Fetches the HTML through the configured Fetcher
2. Extracts the body text with the configured Parser
3. Embeds the text and labels its topic concurrently

Every failure along the way is turned into an unsuccessful
AnalysisResult, so a single bad page never interrupts an audit.

Example:
    ```python
    async with aiohttp.ClientSession() as session:
        analyzer = PageAnalyzer.from_settings(session)
        result = await analyzer.analyze("https://example.com/blog/post")
        if result.success:
            print(result.topic, len(result.vector))
    ```
"""
import asyncio
import importlib
import logging

import aiohttp

from sitefocus.config.settings import (
    FETCHER_CLS_NAME,
    PARSER_CLS_NAME,
    ENCODER_CLS_NAME,
    LABELLER_CLS_NAME,
)
from sitefocus.core.interfaces.analyzer import Analyzer, AnalysisResult
from sitefocus.core.interfaces.encoder import Encoder, TopicLabeller
from sitefocus.core.interfaces.fetcher import Fetcher
from sitefocus.core.interfaces.parser import Parser

logger = logging.getLogger(__name__)

def get_class_from_name(class_name: str):
    """Dynamically import a class from its full name"""
    module_name, class_name = class_name.rsplit('.', 1)
    module = importlib.import_module(module_name)
    return getattr(module, class_name)

class PageAnalyzer(Analyzer):
    """
    Composes fetcher, parser, encoder and topic labeller into an Analyzer.

    Attributes:
        fetcher: Downloads page HTML
        parser: Extracts the text to embed
        encoder: Turns text into a vector
        labeller: Names the page topic
    """

    def __init__(self, fetcher: Fetcher, parser: Parser, encoder: Encoder, labeller: TopicLabeller):
        self.fetcher = fetcher
        self.parser = parser
        self.encoder = encoder
        self.labeller = labeller

    @classmethod
    def from_settings(cls, session: aiohttp.ClientSession) -> "PageAnalyzer":
        """Build the analyzer from the component class names in settings."""
        return cls(
            fetcher=get_class_from_name(FETCHER_CLS_NAME)(session),
            parser=get_class_from_name(PARSER_CLS_NAME)(),
            encoder=get_class_from_name(ENCODER_CLS_NAME)(session),
            labeller=get_class_from_name(LABELLER_CLS_NAME)(session),
        )

    async def analyze(self, url: str) -> AnalysisResult:
        fetch_result = await self.fetcher.fetch(url)
        if not fetch_result.ok:
            return AnalysisResult.failure(url, fetch_result.error or f"HTTP {fetch_result.status_code}")

        try:
            assets = self.parser.parse(url, fetch_result.content)
        except ValueError as e:
            return AnalysisResult.failure(url, str(e))

        vector, label = await asyncio.gather(
            self.encoder.encode(assets.clean_text),
            self.labeller.label(url, assets.clean_text),
            return_exceptions=True,
        )
        if isinstance(vector, BaseException):
            logger.debug("Encoder failed for %s", url, exc_info=vector)
            return AnalysisResult.failure(url, f"Embedding failed: {vector}")
        if isinstance(label, BaseException):
            # the vector is what matters; a missing label only loses the topic
            logger.warning("Topic labeller raised for %s: %s", url, label)
            return AnalysisResult(url=url, success=True, vector=vector,
                                  title=assets.title, heading=assets.heading)

        return AnalysisResult(
            url=url,
            success=True,
            vector=vector,
            topic=label.topic or "General",
            summary=label.summary,
            title=assets.title,
            heading=assets.heading,
        )
