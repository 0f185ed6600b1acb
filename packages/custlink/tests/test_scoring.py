"""Tests for name similarity scoring."""

import pytest

from custlink.scoring import levenshtein_distance, name_similarity, to_confidence


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("acme", "acme") == 0


def test_identical_names():
    assert name_similarity("Acme Corp", "Acme Corp") == 1.0


def test_punctuation_ignored():
    assert name_similarity("Acme Corp", "Acme Corp.") == 1.0


def test_designators_count_by_default():
    assert name_similarity("Acme Inc", "Acme LLC") == pytest.approx(1 - 2 / 7)
    assert name_similarity("Acme Corp", "Acme Corporation") < 0.8


def test_designator_variants_identical_when_stripped():
    assert name_similarity("Acme Corp", "Acme Corporation", strip_designators=True) == 1.0
    assert name_similarity("Acme Inc", "Acme LLC", strip_designators=True) == 1.0


def test_similarity_is_symmetric():
    a, b = "Acme Holdings", "Acme Holding Group"
    assert name_similarity(a, b) == name_similarity(b, a)


def test_similarity_near_miss():
    assert name_similarity("Acme Holdings", "Acme Holding") == pytest.approx(1 - 1 / 12)


def test_empty_names_score_zero():
    assert name_similarity("", "") == 0.0
    assert name_similarity(None, "Acme") == 0.0
    assert name_similarity("Acme", "!!!") == 0.0


def test_similarity_in_valid_range():
    score = name_similarity("Test Company Ltd", "Another Firm Inc")
    assert 0.0 <= score <= 1.0


class TestToConfidence:
    """Tests for similarity to confidence conversion."""

    def test_bounds(self):
        assert to_confidence(0.0) == 0
        assert to_confidence(1.0) == 100

    def test_rounds_half_up(self):
        assert to_confidence(0.125) == 13
        assert to_confidence(0.375) == 38

    def test_rounds_down_below_half(self):
        assert to_confidence(1 - 1 / 12) == 92
