"""
Audit report and its text rendering.

Percentages are only produced here; the engine keeps the focus score as
a raw similarity in [0, 1].
"""
from dataclasses import dataclass, field, asdict
from typing import List, Optional

from sitefocus.auditor.orchestrator import AuditRun, SkippedItem
from sitefocus.coherence.models import CoherenceReport, EmbeddedPage

NO_DATA_MESSAGE = "Insufficient data: no page could be analysed. Check the API keys or quota."

# Display targets, shown next to the metrics in the summary
FOCUS_TARGET = 0.8
RADIUS_TARGET = 0.15

@dataclass
class AuditReport:
    """
    Outcome of one audit run.

    Attributes:
        domain: The audited domain
        attempted: Number of URLs sent for analysis
        succeeded: Number of URLs that produced a page
        skipped: URLs left out and why
        coherence: Metrics and per-page analysis
        summary: Plain-text summary of the metrics
        entity_profile: AI-written description of the site (optional)
        cancelled: Whether the run was stopped early
    """
    domain: str
    attempted: int
    succeeded: int
    skipped: List[SkippedItem] = field(default_factory=list)
    coherence: CoherenceReport = field(default_factory=CoherenceReport.empty)
    summary: str = NO_DATA_MESSAGE
    entity_profile: Optional[str] = None
    cancelled: bool = False

    @property
    def has_data(self) -> bool:
        return self.coherence.has_data

    @classmethod
    def from_run(cls, run: AuditRun, entity_profile: Optional[str] = None) -> "AuditReport":
        return cls(
            domain=run.domain,
            attempted=run.attempted,
            succeeded=run.succeeded,
            skipped=list(run.skipped),
            coherence=run.report,
            summary=build_summary(run.domain, run.report),
            entity_profile=entity_profile,
            cancelled=run.cancelled,
        )

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "has_data": self.has_data,
            "skipped": [asdict(s) for s in self.skipped],
            "coherence": self.coherence.to_dict(),
            "summary": self.summary,
            "entity_profile": self.entity_profile,
            "cancelled": self.cancelled,
        }

def percent(value: float) -> str:
    return f"{value * 100:.1f}%"

def build_summary(domain: str, report: CoherenceReport) -> str:
    """
    Plain-text summary of the metrics of a run.

    Example:
        >>> print(build_summary("example.com", CoherenceReport.empty()))
        Insufficient data: no page could be analysed. Check the API keys or quota.
    """
    if not report.has_data:
        return NO_DATA_MESSAGE
    m = report.metrics
    return (
        f"Domain: {domain}\n"
        f"Main focus detected: {report.dominant_topic}\n"
        f"Verdict: {report.verdict.value.upper()}\n\n"
        f"Metrics:\n"
        f"- Site Focus: {m.focus_score:.3f} (target > {FOCUS_TARGET})\n"
        f"- Site Radius: {m.radius:.3f} (target < {RADIUS_TARGET})\n"
        f"- Site Ratio: {m.ratio:.0f}% (on-topic URLs)"
    )

def profile_headings(pages: List[EmbeddedPage]) -> List[str]:
    """Title and H1 lines used as input of the entity profile."""
    lines = []
    for page in pages:
        parts = [p for p in (page.title, page.heading) if p]
        if parts:
            lines.append(" | ".join(dict.fromkeys(parts)))
    return lines

def format_results(report: AuditReport) -> str:
    """Format an audit report for display."""
    output = [f"\nAudit of {report.domain}: {report.succeeded}/{report.attempted} URLs analysed"]
    if report.cancelled:
        output.append("(cancelled before all URLs were analysed)")
    if not report.has_data:
        output.append(NO_DATA_MESSAGE)
        return "\n".join(output)

    for rank, page in enumerate(report.coherence.pages, 1):
        status = "PASS" if page.passed else "FAIL"
        output.append(f"#{rank:<3} sim={page.similarity:.3f}  {status}  [{page.topic}]  {page.url}")

    topics = ", ".join(f"{t} ({n})" for t, n in report.coherence.topics.items())
    output.append(f"\nTopics: {topics}")
    output.append(f"Focus: {percent(report.coherence.metrics.focus_score)}")
    output.append("\n" + report.summary)
    if report.entity_profile:
        output.append("\nEntity profile:\n" + report.entity_profile)
    if report.skipped:
        output.append(f"\nSkipped {len(report.skipped)} URL(s):")
        output.extend(f"  - {s.url}: {s.reason} [{s.kind}]" for s in report.skipped)
    return "\n".join(output)
