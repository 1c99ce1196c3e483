"""
Tests for composite score blending and the similarity functions behind it.
"""

import pytest

from app.libs.scoring import (
    DEFAULT_SEMANTIC_WEIGHT,
    blend,
    configured_weight,
    cosine_similarity,
    lexical_overlap,
    lexical_overlap_scores,
    score_label,
)


def test_default_weight():
    assert DEFAULT_SEMANTIC_WEIGHT == 0.3
    assert blend(80, 50) == 71


@pytest.mark.parametrize(
    "keyword, semantic, weight, expected",
    [
        (90, 20, 0.0, 90),
        (90, 20, 1.0, 20),
        (90, 20, -1.0, 90),
        (90, 20, 2.0, 20),
        (100, 100, 0.3, 100),
        (150, 100, 0.3, 100),
        (-50, 0, 0.0, 0),
        (85, 0, 0.5, 43),
    ],
)
def test_blend(keyword, semantic, weight, expected):
    assert blend(keyword, semantic, weight) == expected


@pytest.mark.parametrize("weight", [0.0, 0.3, 0.5, 1.0])
@pytest.mark.parametrize("fixed", [0, 37, 100])
def test_blend_is_monotonic(weight, fixed):
    steps = range(0, 101, 5)

    by_keyword = [blend(k, fixed, weight) for k in steps]
    by_semantic = [blend(fixed, s, weight) for s in steps]

    assert by_keyword == sorted(by_keyword)
    assert by_semantic == sorted(by_semantic)


def test_blend_returns_int():
    assert isinstance(blend(70.4, 33.3, 0.3), int)


def test_configured_weight_is_clamped(monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "semantic_weight", 1.7)
    assert configured_weight() == 1.0
    monkeypatch.setattr(settings, "semantic_weight", 0.25)
    assert configured_weight() == 0.25


@pytest.mark.parametrize(
    "score, label",
    [(95, "Excellent Match"), (80, "Excellent Match"), (60, "Good Match"), (40, "Fair Match"), (39, "Low Match")],
)
def test_score_label(score, label):
    assert score_label(score) == label


def test_cosine_similarity():
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 2.0, 3.0], [2.0, 4.0, 6.0]) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "a, b",
    [([], []), ([1.0], [1.0, 2.0]), ([0.0, 0.0], [1.0, 1.0]), (None, [1.0])],
)
def test_cosine_similarity_degenerate_vectors(a, b):
    assert cosine_similarity(a, b) == 0.0


def test_lexical_overlap():
    assert lexical_overlap("react developer", "Senior React Developer wanted") == 1.0
    assert lexical_overlap("react developer", "Senior Vue developer") == 0.5
    assert lexical_overlap("rust engineer", "python developer") == 0.0


def test_lexical_overlap_ignores_short_words():
    assert lexical_overlap("go developer", "developer for a go shop") == 1.0
    assert lexical_overlap("a an", "a an the") == 0.0


def test_lexical_overlap_empty_inputs():
    assert lexical_overlap("", "anything") == 0.0
    assert lexical_overlap("python", "") == 0.0


def test_lexical_overlap_scores():
    scores = lexical_overlap_scores({"a": "Python developer", "b": ""}, "python developer")
    assert scores == {"a": 1.0, "b": 0.0}
