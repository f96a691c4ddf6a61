"""
Tests for the batch orchestrator.
"""
import asyncio

import pytest

from sitefocus.auditor.orchestrator import (
    AuditRun,
    BatchConfig,
    BatchOrchestrator,
    SKIP_DIMENSION,
    SKIP_FAILURE,
    SKIP_MALFORMED,
    chunked,
)
from sitefocus.core.interfaces.analyzer import AnalysisResult

class FakeAnalyzer:
    """Analyzer whose answers are scripted per URL."""

    def __init__(self, vectors=None, failures=(), raises=(), delays=None, topics=None, raw=None):
        self.vectors = vectors or {}
        self.failures = set(failures)
        self.raises = set(raises)
        self.delays = delays or {}
        self.topics = topics or {}
        self.raw = raw or {}
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def analyze(self, url):
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            if url in self.raises:
                raise RuntimeError("connection reset")
            if url in self.raw:
                return self.raw[url]
            if url in self.failures:
                return AnalysisResult.failure(url, "Scraper error: 403")
            return AnalysisResult(url=url, success=True, vector=self.vectors.get(url, [1.0, 0.0, 0.0]),
                                  topic=self.topics.get(url, "SEO"))
        finally:
            self.in_flight -= 1

class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)

def make(analyzer, batch_size=2, delay=1.5, timeout=5.0):
    sleep = SleepRecorder()
    orchestrator = BatchOrchestrator(analyzer, BatchConfig(batch_size=batch_size, delay=delay, request_timeout=timeout),
                                     sleep=sleep)
    return orchestrator, sleep

def test_chunked():
    assert chunked([], 3) == []
    assert chunked(["a", "b", "c"], 3) == [["a", "b", "c"]]
    assert chunked(["a", "b", "c", "d"], 3) == [["a", "b", "c"], ["d"]]

def test_batch_config_validation():
    with pytest.raises(ValueError):
        BatchConfig(batch_size=0)
    with pytest.raises(ValueError):
        BatchConfig(delay=-1)
    with pytest.raises(ValueError):
        BatchConfig(request_timeout=0)

def test_partial_failure_keeps_successes(caplog):
    urls = [f"https://s.com/{i}" for i in range(5)]
    analyzer = FakeAnalyzer(failures=[urls[1]], raises=[urls[3]])
    orchestrator, _ = make(analyzer)
    run = AuditRun(domain="s.com", urls=urls)

    with caplog.at_level("WARNING"):
        pages = asyncio.run(orchestrator.run(run))

    assert [p.url for p in pages] == [urls[0], urls[2], urls[4]]
    assert run.attempted == 5
    assert run.succeeded == 3
    assert {s.url for s in run.skipped} == {urls[1], urls[3]}
    assert all(s.kind == SKIP_FAILURE for s in run.skipped)
    assert "Skipping https://s.com/1" in caplog.text

def test_chunks_sleep_between_but_not_after_last():
    urls = [f"https://s.com/{i}" for i in range(5)]
    orchestrator, sleep = make(FakeAnalyzer(), batch_size=2, delay=1.5)
    asyncio.run(orchestrator.run(AuditRun(domain="s.com", urls=urls)))
    assert sleep.calls == [1.5, 1.5]

def test_concurrency_bounded_by_batch_size():
    urls = [f"https://s.com/{i}" for i in range(7)]
    analyzer = FakeAnalyzer(delays={u: 0.01 for u in urls})
    orchestrator, _ = make(analyzer, batch_size=3)
    asyncio.run(orchestrator.run(AuditRun(domain="s.com", urls=urls)))
    assert analyzer.max_in_flight == 3
    assert sorted(analyzer.calls) == sorted(urls)

def test_order_fifo_across_chunks_completion_within():
    urls = ["https://s.com/slow", "https://s.com/fast", "https://s.com/next"]
    analyzer = FakeAnalyzer(delays={"https://s.com/slow": 0.05})
    orchestrator, _ = make(analyzer, batch_size=2)
    pages = asyncio.run(orchestrator.run(AuditRun(domain="s.com", urls=urls)))
    assert [p.url for p in pages] == ["https://s.com/fast", "https://s.com/slow", "https://s.com/next"]

def test_timeout_is_a_skip():
    urls = ["https://s.com/hang", "https://s.com/ok"]
    analyzer = FakeAnalyzer(delays={"https://s.com/hang": 10})
    orchestrator, _ = make(analyzer, timeout=0.05)
    run = AuditRun(domain="s.com", urls=urls)
    pages = asyncio.run(orchestrator.run(run))
    assert [p.url for p in pages] == ["https://s.com/ok"]
    assert run.skipped[0].url == "https://s.com/hang"
    assert "Timed out" in run.skipped[0].reason

def test_dimension_mismatch_excluded_and_logged_distinctly(caplog):
    urls = ["https://s.com/a", "https://s.com/b", "https://s.com/c"]
    analyzer = FakeAnalyzer(vectors={"https://s.com/b": [1.0, 0.0]})
    orchestrator, _ = make(analyzer, batch_size=1)
    run = AuditRun(domain="s.com", urls=urls)
    with caplog.at_level("WARNING"):
        pages = asyncio.run(orchestrator.run(run))
    assert [p.url for p in pages] == ["https://s.com/a", "https://s.com/c"]
    assert run.dimension == 3
    assert run.skipped[0].kind == SKIP_DIMENSION
    assert "Dimension mismatch" in caplog.text

def test_malformed_vectors_skipped():
    urls = ["https://s.com/empty", "https://s.com/nan", "https://s.com/text", "https://s.com/ok"]
    analyzer = FakeAnalyzer(vectors={
        "https://s.com/empty": [],
        "https://s.com/nan": [float("nan"), 1.0, 0.0],
        "https://s.com/text": ["a", "b", "c"],
    })
    orchestrator, _ = make(analyzer, batch_size=4)
    run = AuditRun(domain="s.com", urls=urls)
    pages = asyncio.run(orchestrator.run(run))
    assert [p.url for p in pages] == ["https://s.com/ok"]
    assert {s.kind for s in run.skipped} == {SKIP_MALFORMED}

def test_missing_topic_defaults_to_general():
    analyzer = FakeAnalyzer(topics={"https://s.com/a": ""})
    orchestrator, _ = make(analyzer)
    pages = asyncio.run(orchestrator.run(AuditRun(domain="s.com", urls=["https://s.com/a"])))
    assert pages[0].topic == "General"

def test_progress_hook_sees_growing_report():
    urls = [f"https://s.com/{i}" for i in range(5)]
    orchestrator, _ = make(FakeAnalyzer(), batch_size=2)
    seen = []

    def on_progress(run, chunk, chunks):
        seen.append((chunk, chunks, run.report.page_count, run.report.has_data))

    asyncio.run(orchestrator.run(AuditRun(domain="s.com", urls=urls), on_progress=on_progress))
    assert seen == [(1, 3, 2, True), (2, 3, 4, True), (3, 3, 5, True)]

def test_async_progress_hook_is_awaited():
    calls = []

    async def on_progress(run, chunk, chunks):
        calls.append(chunk)

    orchestrator, _ = make(FakeAnalyzer(), batch_size=1)
    asyncio.run(orchestrator.run(AuditRun(domain="s.com", urls=["https://s.com/a", "https://s.com/b"]),
                                 on_progress=on_progress))
    assert calls == [1, 2]

def test_cancellation_stops_at_chunk_boundary():
    urls = [f"https://s.com/{i}" for i in range(6)]
    analyzer = FakeAnalyzer()
    orchestrator, sleep = make(analyzer, batch_size=2)
    run = AuditRun(domain="s.com", urls=urls)

    def on_progress(run, chunk, chunks):
        if chunk == 1:
            run.cancel()

    pages = asyncio.run(orchestrator.run(run, on_progress=on_progress))
    assert len(pages) == 2
    assert run.attempted == 2
    assert analyzer.calls == urls[:2]
    assert sleep.calls == []
    assert run.cancelled

def test_all_failures_return_empty_no_data():
    urls = ["https://s.com/a", "https://s.com/b"]
    orchestrator, _ = make(FakeAnalyzer(failures=urls))
    run = AuditRun(domain="s.com", urls=urls)
    pages = asyncio.run(orchestrator.run(run))
    assert pages == []
    assert run.attempted == 2
    assert run.report.has_data is False

def test_unexpected_results_are_skipped_without_losing_the_run():
    urls = ["https://s.com/a", "https://s.com/bad", "https://s.com/c"]
    analyzer = FakeAnalyzer(raw={"https://s.com/bad": None})
    orchestrator, _ = make(analyzer, batch_size=1)
    run = AuditRun(domain="s.com", urls=urls)
    pages = asyncio.run(orchestrator.run(run))
    assert [p.url for p in pages] == ["https://s.com/a", "https://s.com/c"]
    assert run.skipped[0].kind == SKIP_MALFORMED
    assert run.report.page_count == 2

def test_string_vector_is_not_an_embedding():
    urls = ["https://s.com/ok", "https://s.com/str", "https://s.com/bytes"]
    analyzer = FakeAnalyzer(vectors={"https://s.com/str": "123", "https://s.com/bytes": b"123"})
    orchestrator, _ = make(analyzer, batch_size=1)
    run = AuditRun(domain="s.com", urls=urls)
    pages = asyncio.run(orchestrator.run(run))
    assert [p.url for p in pages] == ["https://s.com/ok"]
    assert [s.kind for s in run.skipped] == [SKIP_MALFORMED, SKIP_MALFORMED]

def test_non_string_topic_is_coerced():
    analyzer = FakeAnalyzer(raw={"https://s.com/a": AnalysisResult(url="https://s.com/a", success=True,
                                                                   vector=[1.0, 0.0], topic=42)})
    orchestrator, _ = make(analyzer)
    pages = asyncio.run(orchestrator.run(AuditRun(domain="s.com", urls=["https://s.com/a"])))
    assert pages[0].topic == "42"

def test_cancel_after_last_chunk_is_a_complete_run():
    urls = [f"https://s.com/{i}" for i in range(4)]
    orchestrator, _ = make(FakeAnalyzer(), batch_size=2)
    run = AuditRun(domain="s.com", urls=urls)

    def on_progress(run, chunk, chunks):
        if chunk == chunks:
            run.cancel()

    pages = asyncio.run(orchestrator.run(run, on_progress=on_progress))
    assert len(pages) == 4
    assert run.cancel_requested
    assert run.cancelled is False
