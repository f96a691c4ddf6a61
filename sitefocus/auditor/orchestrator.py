"""
Batch orchestrator: drives a URL list through the page analyzer.

URLs are processed in consecutive chunks. Inside a chunk every URL is
analysed concurrently and each call carries its own timeout; the next
chunk only starts after the whole chunk has settled and the inter-batch
delay has passed, which keeps the external APIs under their rate limits.

A failed, timed-out or malformed analysis is logged and skipped, never
raised. After each chunk the coherence engine recomputes the report over
everything collected so far, and the progress hook receives it, so
callers can display metrics while the audit is still running.

Example:
    ```python
    orchestrator = BatchOrchestrator(analyzer, BatchConfig(batch_size=3, delay=1.0))
    run = AuditRun(domain="example.com", urls=urls)
    pages = await orchestrator.run(run, on_progress=print_progress)
    ```
"""
import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from sitefocus.config.settings import BATCH_CONFIG
from sitefocus.coherence.engine import CoherenceEngine
from sitefocus.coherence.models import CoherenceReport, EmbeddedPage, DEFAULT_TOPIC
from sitefocus.core.interfaces.analyzer import Analyzer, AnalysisResult

logger = logging.getLogger(__name__)

SKIP_FAILURE = "failure"
SKIP_MALFORMED = "malformed"
SKIP_DIMENSION = "dimension_mismatch"

@dataclass(frozen=True)
class BatchConfig:
    """
    Pacing of remote analyses.

    Attributes:
        batch_size: URLs analysed concurrently per chunk
        delay: Seconds to wait between chunks
        request_timeout: Seconds before a single analysis counts as failed
    """
    batch_size: int = BATCH_CONFIG["batch_size"]
    delay: float = BATCH_CONFIG["delay"]
    request_timeout: float = BATCH_CONFIG["request_timeout"]

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got {self.request_timeout}")

@dataclass
class SkippedItem:
    url: str
    reason: str
    kind: str = SKIP_FAILURE

@dataclass
class AuditRun:
    """
    Context of one audit, owned by the caller and passed to each stage.

    Attributes:
        domain: The audited domain
        urls: URLs to analyse, in order
        attempted: URLs whose analysis has been started
        pages: Valid pages collected so far
        skipped: URLs that produced no page, with the reason
        dimension: Vector length fixed by the first accepted page
        report: Latest coherence report
        cancel_event: Set to stop the run at the next chunk boundary
        cancelled: True when chunks were left unprocessed because of a cancel
    """
    domain: str
    urls: List[str] = field(default_factory=list)
    attempted: int = 0
    pages: List[EmbeddedPage] = field(default_factory=list)
    skipped: List[SkippedItem] = field(default_factory=list)
    dimension: Optional[int] = None
    report: CoherenceReport = field(default_factory=CoherenceReport.empty)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    cancelled: bool = False

    @property
    def succeeded(self) -> int:
        return len(self.pages)

    @property
    def cancel_requested(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

ProgressHook = Callable[[AuditRun, int, int], Union[None, Awaitable[None]]]

def chunked(items: Sequence[str], size: int) -> List[List[str]]:
    """
    Split items into consecutive chunks of ``size``.

    Example:
        >>> chunked(["a", "b", "c", "d", "e"], 2)
        [['a', 'b'], ['c', 'd'], ['e']]
    """
    return [list(items[i:i + size]) for i in range(0, len(items), size)]

class BatchOrchestrator:
    """
    Runs analyses chunk by chunk and feeds the coherence engine.

    Attributes:
        analyzer: The per-URL embedding source
        config: Batch size, delay and per-call timeout
        engine: Coherence engine recomputed after every chunk
    """

    def __init__(self, analyzer: Analyzer, config: Optional[BatchConfig] = None,
                 engine: Optional[CoherenceEngine] = None, sleep=asyncio.sleep):
        self.analyzer = analyzer
        self.config = config or BatchConfig()
        self.engine = engine or CoherenceEngine()
        self._sleep = sleep

    async def _analyze_one(self, url: str) -> Union[AnalysisResult, SkippedItem]:
        """Analyse one URL; every failure comes back as a SkippedItem."""
        try:
            return await asyncio.wait_for(self.analyzer.analyze(url), timeout=self.config.request_timeout)
        except asyncio.TimeoutError:
            return SkippedItem(url, f"Timed out after {self.config.request_timeout:g}s")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return SkippedItem(url, f"{type(e).__name__}: {e}")

    def _accept(self, run: AuditRun, outcome: Union[AnalysisResult, SkippedItem]) -> None:
        """Validate one outcome and record it in the run."""
        if isinstance(outcome, SkippedItem):
            logger.warning("Skipping %s: %s", outcome.url, outcome.reason)
            run.skipped.append(outcome)
            return

        if not isinstance(outcome, AnalysisResult):
            url = getattr(outcome, "url", "<unknown>")
            logger.warning("Skipping %s: analyzer returned %s", url, type(outcome).__name__)
            run.skipped.append(SkippedItem(str(url), f"unexpected result {type(outcome).__name__}", SKIP_MALFORMED))
            return

        if not outcome.success:
            reason = outcome.error or "analysis unsuccessful"
            logger.warning("Skipping %s: %s", outcome.url, reason)
            run.skipped.append(SkippedItem(outcome.url, reason))
            return

        vector = ()
        # a string is a Sequence too, but never an embedding
        if isinstance(outcome.vector, Sequence) and not isinstance(outcome.vector, (str, bytes)):
            try:
                vector = tuple(float(v) for v in outcome.vector)
            except (TypeError, ValueError):
                vector = ()
        if not vector or not all(math.isfinite(v) for v in vector):
            logger.warning("Skipping %s: missing or non-numeric vector", outcome.url)
            run.skipped.append(SkippedItem(outcome.url, "missing or non-numeric vector", SKIP_MALFORMED))
            return

        if run.dimension is None:
            run.dimension = len(vector)
        elif len(vector) != run.dimension:
            logger.warning(
                "Dimension mismatch for %s: got %d, run uses %d (provider or model changed?)",
                outcome.url, len(vector), run.dimension,
            )
            run.skipped.append(SkippedItem(
                outcome.url, f"vector dimension {len(vector)} != {run.dimension}", SKIP_DIMENSION,
            ))
            return

        run.pages.append(EmbeddedPage(
            url=outcome.url,
            vector=vector,
            topic=str(outcome.topic or "").strip() or DEFAULT_TOPIC,
            summary=str(outcome.summary or ""),
            title=str(outcome.title or ""),
            heading=str(outcome.heading or ""),
        ))

    async def _run_chunk(self, run: AuditRun, chunk: List[str]) -> None:
        tasks = [asyncio.create_task(self._analyze_one(url)) for url in chunk]
        run.attempted += len(chunk)
        try:
            # collect in completion order; one collector, no shared writes
            for next_done in asyncio.as_completed(tasks):
                self._accept(run, await next_done)
        finally:
            for task in tasks:
                task.cancel()

    async def run(self, run: AuditRun, on_progress: Optional[ProgressHook] = None) -> List[EmbeddedPage]:
        """
        Analyse every URL of the run, chunk by chunk.

        Args:
            run: The audit context; its urls are analysed in order
            on_progress: Called after each chunk with (run, chunk_index, chunk_count)

        Returns:
            The pages collected (also available as run.pages). An empty list
            means no URL could be analysed.
        """
        chunks = chunked(run.urls, self.config.batch_size)
        logger.info("Analysing %d URLs in %d chunks of up to %d", len(run.urls), len(chunks), self.config.batch_size)

        for index, chunk in enumerate(chunks):
            if run.cancel_requested:
                run.cancelled = True
                logger.info("Audit of %s cancelled after %d/%d chunks", run.domain, index, len(chunks))
                break

            await self._run_chunk(run, chunk)
            run.report = self.engine.analyze(run.pages)
            logger.info("Chunk %d/%d done: %d/%d pages analysed",
                        index + 1, len(chunks), run.succeeded, run.attempted)

            if on_progress is not None:
                result = on_progress(run, index + 1, len(chunks))
                if asyncio.iscoroutine(result):
                    await result

            if index < len(chunks) - 1 and not run.cancel_requested:
                await self._sleep(self.config.delay)

        if not run.pages:
            logger.error("No page of %s could be analysed (%d attempted)", run.domain, run.attempted)
        return run.pages
