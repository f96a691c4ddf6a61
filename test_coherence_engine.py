"""
Tests for the vector coherence engine.
"""
import math
import random

import pytest

from sitefocus.coherence.engine import (
    CoherenceEngine,
    classify_verdict,
    compute_centroid,
    compute_metrics,
    cosine_similarity,
    focus_k,
    project_to_plane,
    stable_angle,
    topic_distribution,
)
from sitefocus.coherence.models import (
    CoherenceConfig,
    EmbeddedPage,
    Verdict,
    VerdictConfig,
)

def page(url, vector, topic="General"):
    return EmbeddedPage(url=url, vector=tuple(vector), topic=topic)

def test_centroid_is_componentwise_mean():
    assert compute_centroid([[1, 0], [0, 1]]) == [0.5, 0.5]
    assert compute_centroid([[1, 2, 3], [3, 2, 1], [2, 2, 2]]) == pytest.approx([2, 2, 2])

def test_centroid_rejects_empty_and_mixed_dimensions():
    with pytest.raises(ValueError):
        compute_centroid([])
    with pytest.raises(ValueError):
        compute_centroid([[1, 0], [1, 0, 0]])

def test_cosine_similarity_symmetry_and_identity():
    rng = random.Random(7)
    for _ in range(20):
        a = [rng.uniform(-1, 1) for _ in range(8)]
        b = [rng.uniform(-1, 1) for _ in range(8)]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
        assert cosine_similarity(a, a) == pytest.approx(1.0)

def test_cosine_similarity_zero_norm_is_zero():
    assert cosine_similarity([0, 0], [1, 1]) == 0.0
    assert cosine_similarity([1, 1], [0, 0]) == 0.0
    assert cosine_similarity([0, 0], [0, 0]) == 0.0

def test_cosine_similarity_dimension_mismatch():
    with pytest.raises(ValueError):
        cosine_similarity([1, 0], [1, 0, 0])

def test_metrics_scenario_from_four_pages():
    metrics = compute_metrics([0.9, 0.85, 0.5, 0.3], CoherenceConfig(similarity_threshold=0.7, focus_percentile=0.25))

    assert metrics.ratio == 50.0
    assert metrics.focus_score == pytest.approx(0.9)

    distances = [0.1, 0.15, 0.5, 0.7]
    mean = sum(distances) / 4
    expected = math.sqrt(sum((d - mean) ** 2 for d in distances) / 4)
    assert metrics.radius == pytest.approx(expected)

def test_metrics_empty_is_no_data():
    assert compute_metrics([]) is None

def test_focus_k_is_at_least_one():
    assert focus_k(1, 0.25) == 1
    assert focus_k(4, 0.25) == 1
    assert focus_k(5, 0.25) == 2
    assert focus_k(10, 1.0) == 10

def test_ratio_threshold_is_strict():
    assert compute_metrics([0.7, 0.7, 0.71]).ratio == pytest.approx(100 / 3)

def test_ratio_never_increases_with_threshold():
    sims = [0.95, 0.81, 0.72, 0.7, 0.64, 0.3, 0.1]
    ratios = [compute_metrics(sims, CoherenceConfig(similarity_threshold=t)).ratio
              for t in [0.0, 0.3, 0.5, 0.7, 0.72, 0.8, 0.9, 0.99]]
    assert ratios == sorted(ratios, reverse=True)

def test_focus_not_below_mean():
    rng = random.Random(3)
    for _ in range(25):
        sims = [rng.uniform(0, 1) for _ in range(rng.randint(1, 15))]
        metrics = compute_metrics(sims)
        assert metrics.focus_score >= metrics.mean_similarity - 1e-12

def test_metrics_tolerate_values_slightly_outside_unit_range():
    metrics = compute_metrics([1.0000000002, -1.0000000001])
    assert math.isfinite(metrics.radius)
    assert math.isfinite(metrics.focus_score)

def test_identical_pages_have_zero_radius():
    metrics = compute_metrics([1.0, 1.0, 1.0])
    assert metrics.radius == 0.0
    assert metrics.ratio == 100.0

def test_projection_radius_and_angle():
    point = project_to_plane(0.5, 3.0, angle=0.0)
    assert point.x == pytest.approx(1.5)
    assert point.y == pytest.approx(0.0)

    rng = random.Random(1)
    for _ in range(50):
        point = project_to_plane(0.8, 3.0, rng=rng)
        assert 0 <= point.angle < 2 * math.pi
        assert math.hypot(point.x, point.y) == pytest.approx(0.6)

def test_stable_angle_is_deterministic():
    assert stable_angle("https://example.com/a") == stable_angle("https://example.com/a")
    assert 0 <= stable_angle("https://example.com/b") < 2 * math.pi

def test_verdict_boundaries():
    assert classify_verdict(100) is Verdict.HIGH
    assert classify_verdict(80) is Verdict.HIGH
    assert classify_verdict(79.9) is Verdict.MODERATE
    assert classify_verdict(50) is Verdict.MODERATE
    assert classify_verdict(49.9) is Verdict.DILUTED
    assert classify_verdict(60, VerdictConfig(high_ratio=60, moderate_ratio=40)) is Verdict.HIGH

def test_config_validation():
    with pytest.raises(ValueError):
        CoherenceConfig(focus_percentile=0)
    with pytest.raises(ValueError):
        CoherenceConfig(angle_strategy="spiral")
    with pytest.raises(ValueError):
        VerdictConfig(high_ratio=40, moderate_ratio=60)

def test_topic_distribution_first_seen_wins_ties():
    pages = [page("a", [1, 0], "SEO"), page("b", [1, 0], "Food"), page("c", [1, 0], "Food"), page("d", [1, 0], "SEO")]
    topics, dominant = topic_distribution(pages)
    assert topics == {"SEO": 2, "Food": 2}
    assert dominant == "SEO"
    assert topic_distribution([]) == ({}, "Various")

def test_engine_empty_set_returns_no_data():
    report = CoherenceEngine().analyze([])
    assert report.has_data is False
    assert report.verdict is None
    assert report.metrics.focus_score == 0.0
    assert report.metrics.ratio == 0.0
    assert report.metrics.radius == 0.0

def test_engine_report_sorted_and_classified():
    pages = [
        page("https://s.com/off", [0, 1, 0], "Other"),
        page("https://s.com/a", [1, 0.1, 0], "SEO"),
        page("https://s.com/b", [1, 0, 0.1], "SEO"),
        page("https://s.com/c", [1, 0.05, 0.05], "SEO"),
    ]
    report = CoherenceEngine().analyze(pages)

    assert report.has_data
    assert report.page_count == 4
    sims = [p.similarity for p in report.pages]
    assert sims == sorted(sims, reverse=True)
    assert report.pages[-1].url == "https://s.com/off"
    assert report.pages[-1].passed is False
    assert report.metrics.ratio == 75.0
    assert report.verdict is Verdict.MODERATE
    assert report.dominant_topic == "SEO"
    assert report.centroid == pytest.approx([0.75, 0.2875, 0.0375])

def test_engine_zero_vector_page_does_not_produce_nan():
    report = CoherenceEngine().analyze([page("z", [0, 0]), page("a", [1, 0])])
    by_url = {p.url: p for p in report.pages}
    assert by_url["z"].similarity == 0.0
    assert all(math.isfinite(v) for v in (report.metrics.focus_score, report.metrics.radius, report.metrics.ratio))

def test_engine_keeps_angles_across_recomputation():
    engine = CoherenceEngine(seed=42)
    first = engine.analyze([page("a", [1, 0]), page("b", [0.8, 0.6])])
    second = engine.analyze([page("a", [1, 0]), page("b", [0.8, 0.6]), page("c", [0, 1])])

    angles_first = {p.url: p.point.angle for p in first.pages}
    angles_second = {p.url: p.point.angle for p in second.pages}
    assert angles_second["a"] == angles_first["a"]
    assert angles_second["b"] == angles_first["b"]

    radius_first = {p.url: p.point.r for p in first.pages}
    radius_second = {p.url: p.point.r for p in second.pages}
    assert radius_second["a"] != pytest.approx(radius_first["a"])

def test_hash_angle_strategy_is_reproducible():
    pages = [page("https://s.com/a", [1, 0]), page("https://s.com/b", [0, 1])]
    config = CoherenceConfig(angle_strategy="hash")
    one = {p.url: p.point for p in CoherenceEngine(config).analyze(pages).pages}
    two = {p.url: p.point for p in CoherenceEngine(config).analyze(pages).pages}
    assert one == two
    assert one["https://s.com/a"].angle == stable_angle("https://s.com/a")

def test_report_to_dict_is_serialisable():
    report = CoherenceEngine().analyze([page("a", [1, 0]), page("b", [1, 1])])
    data = report.to_dict()
    assert data["verdict"] in {v.value for v in Verdict}
    assert set(data["pages"][0]["point"]) == {"x", "y", "r", "angle"}
    assert "centroid" not in data
    assert "centroid" in report.to_dict(include_centroid=True)
