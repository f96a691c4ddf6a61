"""
Interface for per-URL page analysis (the embedding source).

An analyzer takes a URL and returns its embedding plus a topic label.
The batch orchestrator only depends on this protocol, so the scraping
and model providers behind it can be swapped freely.

Example:
    ```python
    class MockAnalyzer(Analyzer):
        async def analyze(self, url: str) -> AnalysisResult:
            return AnalysisResult(
                url=url,
                success=True,
                vector=[0.1, 0.2, 0.3],
                topic="SEO"
            )
    ```
"""
from typing import Protocol, Optional, List
from dataclasses import dataclass, field

@dataclass
class AnalysisResult:
    """
    Response of a single page analysis.

    Attributes:
        url: The analysed URL
        success: Whether the analysis produced a usable vector
        vector: The page embedding (empty on failure)
        topic: Short topic label
        summary: One-sentence description of the page
        title: Page title, used for the entity profile
        heading: First H1 of the page, used for the entity profile
        error: Error message when success is False
    """
    url: str
    success: bool
    vector: List[float] = field(default_factory=list)
    topic: str = "General"
    summary: str = ""
    title: str = ""
    heading: str = ""
    error: Optional[str] = None

    @classmethod
    def failure(cls, url: str, error: str) -> "AnalysisResult":
        return cls(url=url, success=False, error=error)

class Analyzer(Protocol):
    """Protocol for turning a URL into an AnalysisResult."""

    async def analyze(self, url: str) -> AnalysisResult:
        """
        Analyse one URL.

        Implementations should report failures through
        ``AnalysisResult.success`` rather than raising, although the
        orchestrator also tolerates exceptions.
        """
        ...
