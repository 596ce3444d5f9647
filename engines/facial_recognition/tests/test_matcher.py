"""
Tests for FaceMatcher engine module.
"""

import math

import numpy as np
import pytest

from engines.facial_recognition.errors import InvalidVectorShape
from engines.facial_recognition.gallery import EmbeddingGallery
from engines.facial_recognition.matcher import (
    DEFAULT_MATCH_THRESHOLD, FaceMatcher, MatchResult,
)


def _unit(index, scale=1.0):
    vec = np.zeros(128, dtype=np.float32)
    vec[index] = scale
    return vec


class TestMatchResult:
    def test_matched_property(self):
        assert MatchResult(identity_id=1, name='A', distance=0.1).matched is True
        assert MatchResult().matched is False

    def test_to_dict(self):
        d = MatchResult(identity_id=5, name='Alice', distance=0.12346).to_dict()
        assert d == {'identity_id': 5, 'name': 'Alice', 'distance': 0.1235}

    def test_to_dict_without_distance(self):
        assert MatchResult().to_dict()['distance'] is None


class TestFaceMatcher:
    def test_default_threshold(self):
        assert FaceMatcher(EmbeddingGallery()).threshold == DEFAULT_MATCH_THRESHOLD

    def test_empty_gallery_returns_no_match(self):
        result = FaceMatcher(EmbeddingGallery()).match(_unit(0))
        assert result.matched is False
        assert math.isinf(result.distance)

    def test_exact_match(self):
        gallery = EmbeddingGallery()
        alice_id = gallery.insert('Alice', _unit(0))
        result = FaceMatcher(gallery).match(_unit(0))
        assert result.identity_id == alice_id
        assert result.name == 'Alice'
        assert result.distance == pytest.approx(0.0)

    def test_match_under_threshold(self):
        gallery = EmbeddingGallery()
        gallery.insert('Alice', _unit(0))
        query = _unit(0)
        query[1] = 0.1
        result = FaceMatcher(gallery, threshold=0.6).match(query)
        assert result.matched is True
        assert result.distance == pytest.approx(0.1, abs=1e-6)

    def test_distance_equal_to_threshold_is_rejected(self):
        gallery = EmbeddingGallery()
        gallery.insert('Alice', np.zeros(128, dtype=np.float32))
        result = FaceMatcher(gallery, threshold=0.5).match(_unit(0, 0.5))
        assert result.matched is False
        assert result.distance == 0.5

    def test_far_query_reports_best_distance(self):
        gallery = EmbeddingGallery()
        gallery.insert('Alice', _unit(0))
        result = FaceMatcher(gallery).match(_unit(0, 6.0))
        assert result.matched is False
        assert result.distance == pytest.approx(5.0)

    def test_best_match_among_multiple(self):
        gallery = EmbeddingGallery()
        gallery.insert('A', _unit(0))
        b_id = gallery.insert('B', _unit(1))
        gallery.insert('C', _unit(2))

        query = _unit(1)
        query[0] = 0.2
        assert FaceMatcher(gallery, threshold=0.9).match(query).identity_id == b_id

    def test_tie_goes_to_first_inserted(self):
        gallery = EmbeddingGallery()
        first = gallery.insert('First', _unit(0))
        gallery.insert('Second', _unit(0))
        assert FaceMatcher(gallery).match(_unit(0)).identity_id == first

    def test_threshold_is_configurable(self):
        gallery = EmbeddingGallery()
        gallery.insert('Alice', np.zeros(128, dtype=np.float32))
        query = _unit(0, 0.8)
        assert FaceMatcher(gallery, threshold=0.6).match(query).matched is False
        assert FaceMatcher(gallery, threshold=0.9).match(query).matched is True

    def test_invalid_query_shape(self):
        with pytest.raises(InvalidVectorShape, match='128-d'):
            FaceMatcher(EmbeddingGallery()).match(np.zeros(512))

    def test_match_all(self):
        gallery = EmbeddingGallery()
        gallery.insert('Far', _unit(1, 3.0))
        near_id = gallery.insert('Near', _unit(0))

        results = FaceMatcher(gallery).match_all(_unit(0), top_k=2)
        assert len(results) == 2
        assert results[0][0] == near_id

    def test_stats(self):
        gallery = EmbeddingGallery()
        gallery.insert('X', _unit(0))
        stats = FaceMatcher(gallery, threshold=0.7).get_stats()
        assert stats['known_faces'] == 1
        assert stats['threshold'] == 0.7
