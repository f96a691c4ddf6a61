"""
sitefocus.auditor.__main__
==========================

Command-line entry point for the site auditor.

Example
-------
    python -m sitefocus.auditor example.com --max-urls 10 --summary
"""

import argparse
import asyncio
import logging
import sys

from tqdm import tqdm

from sitefocus.auditor.auditor import SiteAuditor
from sitefocus.auditor.orchestrator import BatchConfig
from sitefocus.auditor.report import format_results, percent
from sitefocus.coherence.models import CoherenceConfig

EXIT_NO_DATA = 2

def build_parser() -> argparse.ArgumentParser:
    defaults = BatchConfig()
    coherence = CoherenceConfig()
    parser = argparse.ArgumentParser(prog="python -m sitefocus.auditor",
                                     description="Audit the semantic focus of a website.")
    parser.add_argument("domain", help="Domain to audit, e.g. example.com")
    parser.add_argument("--max-urls", type=int, default=10, help="Number of discovered URLs to analyse")
    parser.add_argument("--batch-size", type=int, default=defaults.batch_size)
    parser.add_argument("--delay", type=float, default=defaults.delay, help="Seconds between batches")
    parser.add_argument("--timeout", type=float, default=defaults.request_timeout, help="Seconds per URL")
    parser.add_argument("--threshold", type=float, default=coherence.similarity_threshold)
    parser.add_argument("--percentile", type=float, default=coherence.focus_percentile)
    parser.add_argument("--summary", action="store_true", help="Also write the AI entity profile")
    return parser

async def run_audit(args: argparse.Namespace) -> int:
    auditor = SiteAuditor(
        batch_config=BatchConfig(batch_size=args.batch_size, delay=args.delay, request_timeout=args.timeout),
        coherence_config=CoherenceConfig(similarity_threshold=args.threshold, focus_percentile=args.percentile),
    )
    async with auditor:
        print(f"🚀 Starting audit: {args.domain}")
        urls = await auditor.discover(args.domain, max_urls=args.max_urls)
        if not urls:
            print("❌ No URLs found. Check the domain or try again later.")
            return EXIT_NO_DATA
        print(f"📊 {len(urls)} candidate URLs, batches of {args.batch_size}\n")

        with tqdm(total=len(urls), desc="URLs", unit="url") as bar:
            def on_progress(run, chunk, chunks):
                bar.update(run.attempted - bar.n)
                if run.report.has_data:
                    m = run.report.metrics
                    bar.set_postfix(ok=run.succeeded, focus=percent(m.focus_score), ratio=f"{m.ratio:.0f}%")

            report = await auditor.audit(args.domain, urls=urls, on_progress=on_progress,
                                         with_profile=args.summary)

    print(format_results(report))
    return 0 if report.has_data else EXIT_NO_DATA

def main() -> None:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args()
    try:
        sys.exit(asyncio.run(run_audit(args)))
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)

if __name__ == "__main__":  # pragma: no cover
    main()
