"""
Site auditor: discovery, analysis and coherence for one domain.

The auditor owns the audit context (AuditRun) and the shared HTTP
session. It:
1. Discovers candidate URLs (search API, then sitemap)
2. Deduplicates them before any remote analysis is spent
3. Runs the batch orchestrator, which recomputes metrics after each chunk
4. Optionally asks the topic model for an entity profile of the site

Example:
    ```python
    async with SiteAuditor() as auditor:
        report = await auditor.audit("example.com", max_urls=10)
        print(format_results(report))
    ```
"""
import logging
from typing import List, Optional, Sequence

import aiohttp

from sitefocus.auditor.orchestrator import AuditRun, BatchConfig, BatchOrchestrator, ProgressHook
from sitefocus.auditor.report import AuditReport, profile_headings
from sitefocus.coherence.engine import CoherenceEngine
from sitefocus.coherence.models import CoherenceConfig, VerdictConfig
from sitefocus.core.implementations.gemini_client import GeminiTopicLabeller
from sitefocus.core.implementations.page_analyzer import PageAnalyzer
from sitefocus.core.implementations.serper_discovery import SerperDiscovery
from sitefocus.core.implementations.sitemap_discovery import SitemapDiscovery, FallbackDiscovery
from sitefocus.core.interfaces.analyzer import Analyzer
from sitefocus.core.interfaces.discovery import Discovery
from sitefocus.core.urls import dedupe_urls, is_same_domain, normalize_domain

logger = logging.getLogger(__name__)

class SiteAuditor:
    """
    Wires the audit pipeline together.

    Components left as None are built from settings when the auditor is
    entered as an async context manager.

    Attributes:
        discovery: Source of candidate URLs
        analyzer: Per-URL embedding source
        profiler: Writes the entity profile (anything with ``entity_profile``)
        batch_config: Chunk size, delay and timeout
        coherence_config: Metric parameters
        verdict_config: Verdict tier boundaries
    """

    def __init__(self, discovery: Optional[Discovery] = None, analyzer: Optional[Analyzer] = None,
                 profiler=None, batch_config: Optional[BatchConfig] = None,
                 coherence_config: Optional[CoherenceConfig] = None,
                 verdict_config: Optional[VerdictConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.discovery = discovery
        self.analyzer = analyzer
        self.profiler = profiler
        self.batch_config = batch_config or BatchConfig()
        self.coherence_config = coherence_config or CoherenceConfig()
        self.verdict_config = verdict_config or VerdictConfig()
        self.session = session
        self._owns_session = False

    async def __aenter__(self):
        if self.session is None and None in (self.discovery, self.analyzer, self.profiler):
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        if self.discovery is None:
            self.discovery = FallbackDiscovery([SerperDiscovery(self.session), SitemapDiscovery(self.session)])
        if self.analyzer is None:
            self.analyzer = PageAnalyzer.from_settings(self.session)
        if self.profiler is None:
            self.profiler = GeminiTopicLabeller(self.session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._owns_session and self.session:
            await self.session.close()
            self.session = None
            self._owns_session = False

    async def discover(self, domain: str, max_urls: Optional[int] = None) -> List[str]:
        """Return deduplicated candidate URLs of ``domain`` and its subdomains."""
        domain = normalize_domain(domain)
        found = dedupe_urls(await self.discovery.discover(domain))
        urls = [url for url in found if is_same_domain(url, domain)]
        if len(urls) < len(found):
            logger.info("Dropped %d URLs outside %s", len(found) - len(urls), domain)
        if max_urls is not None:
            urls = urls[:max_urls]
        logger.info("Found %d candidate URLs for %s", len(urls), domain)
        return urls

    def new_run(self, domain: str, urls: Sequence[str]) -> AuditRun:
        return AuditRun(domain=normalize_domain(domain), urls=dedupe_urls(urls))

    async def audit(self, domain: str, urls: Optional[Sequence[str]] = None, max_urls: Optional[int] = None,
                    on_progress: Optional[ProgressHook] = None, with_profile: bool = False,
                    run: Optional[AuditRun] = None) -> AuditReport:
        """
        Audit a domain.

        Args:
            domain: Domain to audit
            urls: URLs to analyse; discovered when omitted
            max_urls: Cap on the number of URLs analysed
            on_progress: Called after each chunk, see BatchOrchestrator.run
            with_profile: Also write the entity profile of the site
            run: Pre-built run context (lets the caller cancel it)

        Returns:
            The AuditReport; ``has_data`` is False when nothing could be analysed
        """
        if run is None:
            if urls is None:
                urls = await self.discover(domain)
            run = self.new_run(domain, urls)
        if max_urls is not None:
            run.urls = run.urls[:max_urls]

        if not run.urls:
            logger.error("No URLs to analyse for %s", domain)
            return AuditReport.from_run(run)

        orchestrator = BatchOrchestrator(
            self.analyzer,
            self.batch_config,
            CoherenceEngine(self.coherence_config, self.verdict_config),
        )
        await orchestrator.run(run, on_progress=on_progress)

        profile = None
        if with_profile and run.pages and self.profiler is not None:
            profile = await self.profiler.entity_profile(run.domain, profile_headings(run.pages))
        return AuditReport.from_run(run, entity_profile=profile)
