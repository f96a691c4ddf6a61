"""
Data model of the coherence engine.

Everything here is an in-memory value that lives for one audit run:
embedded pages go in, a CoherenceReport comes out.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Tuple

from sitefocus.config.settings import COHERENCE_CONFIG, VERDICT_CONFIG

DEFAULT_TOPIC = "General"

@dataclass(frozen=True)
class EmbeddedPage:
    """
    A successfully analysed page.

    Attributes:
        url: Page URL (not required to be unique, duplicates skew the centroid)
        vector: Embedding, same dimension for every page of a run
        topic: Short topic label
        summary: One-sentence description of the page
        title: Page title
        heading: First H1 of the page
    """
    url: str
    vector: Tuple[float, ...]
    topic: str = DEFAULT_TOPIC
    summary: str = ""
    title: str = ""
    heading: str = ""

    @property
    def dimension(self) -> int:
        return len(self.vector)

@dataclass(frozen=True)
class CoherenceConfig:
    """
    Versioned parameters of the coherence metrics.

    Attributes:
        similarity_threshold: A page passes when its similarity is strictly above this
        focus_percentile: Share of best pages averaged into the focus score
        radius_scale: Multiplier of the plotted distance (display only)
        angle_strategy: "random" (drawn once per page) or "hash" (derived from the URL)
        version: Label of this parameter set
    """
    similarity_threshold: float = COHERENCE_CONFIG["similarity_threshold"]
    focus_percentile: float = COHERENCE_CONFIG["focus_percentile"]
    radius_scale: float = COHERENCE_CONFIG["radius_scale"]
    angle_strategy: str = COHERENCE_CONFIG["angle_strategy"]
    version: str = COHERENCE_CONFIG["version"]

    def __post_init__(self):
        if not 0 < self.focus_percentile <= 1:
            raise ValueError(f"focus_percentile must be in (0, 1], got {self.focus_percentile}")
        if self.radius_scale < 0:
            raise ValueError(f"radius_scale must be >= 0, got {self.radius_scale}")
        if self.angle_strategy not in ("random", "hash"):
            raise ValueError(f"Unknown angle_strategy: {self.angle_strategy!r}")

@dataclass(frozen=True)
class VerdictConfig:
    """Ratio boundaries (percent) of the verdict tiers."""
    high_ratio: float = VERDICT_CONFIG["high_ratio"]
    moderate_ratio: float = VERDICT_CONFIG["moderate_ratio"]

    def __post_init__(self):
        if self.moderate_ratio > self.high_ratio:
            raise ValueError("moderate_ratio must not exceed high_ratio")

class Verdict(str, Enum):
    HIGH = "high coherence"
    MODERATE = "moderate"
    DILUTED = "diluted / at-risk"

class ProjectedPoint(NamedTuple):
    """Polar layout of a page around the centroid, in cartesian form."""
    x: float
    y: float
    r: float
    angle: float

@dataclass
class CoherenceMetrics:
    """
    Aggregate metrics of a page set.

    focus_score is kept raw in [0, 1]; ratio is a percentage.
    """
    focus_score: float = 0.0
    ratio: float = 0.0
    radius: float = 0.0
    mean_similarity: float = 0.0

@dataclass
class PageAnalysis:
    url: str
    topic: str
    summary: str
    similarity: float
    passed: bool
    point: ProjectedPoint

@dataclass
class CoherenceReport:
    """
    Result of one engine pass.

    When ``has_data`` is False the metrics are zeroed and must be shown
    as "insufficient data", never as a low-coherence verdict.
    """
    has_data: bool
    page_count: int = 0
    centroid: List[float] = field(default_factory=list)
    metrics: CoherenceMetrics = field(default_factory=CoherenceMetrics)
    pages: List[PageAnalysis] = field(default_factory=list)
    verdict: Optional[Verdict] = None
    topics: Dict[str, int] = field(default_factory=dict)
    dominant_topic: str = "Various"
    config_version: str = COHERENCE_CONFIG["version"]

    @classmethod
    def empty(cls, config_version: str = COHERENCE_CONFIG["version"]) -> "CoherenceReport":
        return cls(has_data=False, config_version=config_version)

    def to_dict(self, include_centroid: bool = False) -> dict:
        data = asdict(self)
        data["verdict"] = self.verdict.value if self.verdict else None
        for page, analysis in zip(data["pages"], self.pages):
            page["point"] = analysis.point._asdict()
        if not include_centroid:
            data.pop("centroid")
        return data
