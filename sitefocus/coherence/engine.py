"""
Vector coherence engine.

This module measures how tightly a site's pages cluster around a common
topic:
• Centroid: element-wise mean of all page embeddings
• Similarity: cosine similarity of each page to the centroid
• Focus score: mean similarity of the top percentile of pages
• Ratio: percentage of pages above the similarity threshold
• Radius: standard deviation of the per-page distance (1 - similarity)
• Layout: a 2D polar projection for plotting (cosmetic only)

The functions are pure; CoherenceEngine adds the one piece of state an
audit needs across recomputations, the plotted angle of each page.

Example:
    ```python
    engine = CoherenceEngine()
    report = engine.analyze(pages)
    if report.has_data:
        print(report.metrics.focus_score, report.metrics.ratio, report.verdict)
    ```
"""
import hashlib
import logging
import math
import random
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from sitefocus.coherence.models import (
    CoherenceConfig,
    CoherenceMetrics,
    CoherenceReport,
    EmbeddedPage,
    PageAnalysis,
    ProjectedPoint,
    Verdict,
    VerdictConfig,
)

logger = logging.getLogger(__name__)

TWO_PI = 2 * math.pi

def compute_centroid(vectors: Sequence[Sequence[float]]) -> List[float]:
    """
    Element-wise mean of equally sized vectors.

    Raises:
        ValueError: on an empty input or vectors of different lengths

    Example:
        >>> compute_centroid([[1, 0], [0, 1]])
        [0.5, 0.5]
    """
    if len(vectors) == 0:
        raise ValueError("Cannot compute the centroid of an empty page set")
    dims = {len(v) for v in vectors}
    if len(dims) != 1:
        raise ValueError(f"Vectors have mixed dimensions: {sorted(dims)}")
    return np.mean(np.asarray(vectors, dtype=float), axis=0).tolist()

def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors, 0.0 when either has zero norm.

    Example:
        >>> cosine_similarity([0, 0], [1, 1])
        0.0
    """
    if len(a) != len(b):
        raise ValueError(f"Dimension mismatch: {len(a)} != {len(b)}")
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if norm == 0.0 or not math.isfinite(norm):
        return 0.0
    return float(np.dot(va, vb) / norm)

def focus_k(count: int, percentile: float) -> int:
    """Number of top pages averaged into the focus score (at least 1)."""
    return max(1, math.ceil(count * percentile))

def compute_metrics(similarities: Sequence[float], config: CoherenceConfig = CoherenceConfig()) -> Optional[CoherenceMetrics]:
    """
    Aggregate per-page similarities into focus score, ratio and radius.

    Returns None for an empty input: there is nothing to measure, and the
    caller must report "no data" rather than zero coherence.

    Example:
        >>> m = compute_metrics([0.9, 0.85, 0.5, 0.3])
        >>> m.ratio, m.focus_score
        (50.0, 0.9)
    """
    n = len(similarities)
    if n == 0:
        return None

    ranked = sorted(similarities, reverse=True)
    top = ranked[: focus_k(n, config.focus_percentile)]
    focus_score = sum(top) / len(top)

    passed = sum(1 for s in similarities if s > config.similarity_threshold)
    ratio = 100.0 * passed / n

    distances = [1.0 - s for s in similarities]
    mean_distance = sum(distances) / n
    variance = sum((d - mean_distance) ** 2 for d in distances) / n
    radius = math.sqrt(max(variance, 0.0))

    return CoherenceMetrics(
        focus_score=focus_score,
        ratio=ratio,
        radius=radius,
        mean_similarity=sum(similarities) / n,
    )

def stable_angle(url: str) -> float:
    """Angle in [0, 2pi) derived from the URL, identical on every run."""
    digest = hashlib.sha256(url.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / 2 ** 64 * TWO_PI

def project_to_plane(similarity: float, radius_scale: float,
                     angle: Optional[float] = None, rng: Optional[random.Random] = None) -> ProjectedPoint:
    """
    Place a page on the plane: the less similar, the further from the centre.

    A fresh uniform angle is drawn when none is given.
    """
    if angle is None:
        angle = (rng or random).uniform(0.0, TWO_PI) % TWO_PI
    r = (1.0 - similarity) * radius_scale
    return ProjectedPoint(x=r * math.cos(angle), y=r * math.sin(angle), r=r, angle=angle)

def classify_verdict(ratio: float, config: VerdictConfig = VerdictConfig()) -> Verdict:
    """
    Map a ratio (percent) onto the verdict tiers.

    Example:
        >>> classify_verdict(80).value
        'high coherence'
        >>> classify_verdict(49.9).value
        'diluted / at-risk'
    """
    if ratio >= config.high_ratio:
        return Verdict.HIGH
    if ratio >= config.moderate_ratio:
        return Verdict.MODERATE
    return Verdict.DILUTED

def topic_distribution(pages: Sequence[EmbeddedPage]) -> Tuple[Dict[str, int], str]:
    """
    Count pages per topic and pick the most frequent one.

    Ties go to the topic seen first; an empty set is "Various".
    """
    counts = Counter(page.topic for page in pages)
    if not counts:
        return {}, "Various"
    dominant = counts.most_common(1)[0][0]
    return dict(counts), dominant

class CoherenceEngine:
    """
    Recomputes the coherence report of a growing page set.

    The engine remembers the angle it gave each URL, so when the report is
    recomputed after another batch only the distance from the centre of a
    point moves.

    Attributes:
        config: Metric parameters
        verdict_config: Verdict tier boundaries
    """

    def __init__(self, config: Optional[CoherenceConfig] = None,
                 verdict_config: Optional[VerdictConfig] = None, seed: Optional[int] = None):
        self.config = config or CoherenceConfig()
        self.verdict_config = verdict_config or VerdictConfig()
        self._rng = random.Random(seed)
        self._angles: Dict[str, float] = {}

    def angle_for(self, url: str) -> float:
        if url not in self._angles:
            if self.config.angle_strategy == "hash":
                self._angles[url] = stable_angle(url)
            else:
                self._angles[url] = self._rng.uniform(0.0, TWO_PI) % TWO_PI
        return self._angles[url]

    def analyze(self, pages: Sequence[EmbeddedPage]) -> CoherenceReport:
        """
        Compute centroid, similarities, metrics, verdict and layout.

        Args:
            pages: Validated pages of equal dimension

        Returns:
            The CoherenceReport; CoherenceReport.empty() when pages is empty
        """
        if not pages:
            return CoherenceReport.empty(self.config.version)

        centroid = compute_centroid([page.vector for page in pages])
        similarities = [cosine_similarity(page.vector, centroid) for page in pages]
        metrics = compute_metrics(similarities, self.config)

        analyses = [
            PageAnalysis(
                url=page.url,
                topic=page.topic,
                summary=page.summary,
                similarity=sim,
                passed=sim > self.config.similarity_threshold,
                point=project_to_plane(sim, self.config.radius_scale, angle=self.angle_for(page.url)),
            )
            for page, sim in zip(pages, similarities)
        ]
        # sorted() is stable, ties keep their original order
        analyses = sorted(analyses, key=lambda a: a.similarity, reverse=True)

        topics, dominant = topic_distribution(pages)
        logger.debug("Recomputed coherence for %d pages: focus=%.3f ratio=%.1f radius=%.3f",
                     len(pages), metrics.focus_score, metrics.ratio, metrics.radius)

        return CoherenceReport(
            has_data=True,
            page_count=len(pages),
            centroid=centroid,
            metrics=metrics,
            pages=analyses,
            verdict=classify_verdict(metrics.ratio, self.verdict_config),
            topics=topics,
            dominant_topic=dominant,
            config_version=self.config.version,
        )
