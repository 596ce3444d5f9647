"""
Face Matcher - nearest-neighbor search over the embedding gallery.
Finds the closest enrolled vector by Euclidean distance and applies the
accept threshold.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from engines.facial_recognition.errors import InvalidVectorShape
from engines.facial_recognition.gallery import EMBEDDING_DIM, EmbeddingGallery

logger = logging.getLogger(__name__)

# Accept when the best distance is strictly below this value.
# Observed deployments used 0.6–0.9; override via Config.MATCH_THRESHOLD.
DEFAULT_MATCH_THRESHOLD = 0.6


@dataclass
class MatchResult:
    """Result of matching one embedding against the gallery."""
    identity_id: Optional[int] = None
    name: Optional[str] = None
    distance: float = math.inf

    @property
    def matched(self) -> bool:
        return self.identity_id is not None

    def to_dict(self) -> dict:
        return {
            'identity_id': self.identity_id,
            'name': self.name,
            'distance': round(self.distance, 4) if math.isfinite(self.distance) else None,
        }


class FaceMatcher:
    """
    Matches a query embedding against an EmbeddingGallery.

    Linear scan, O(gallery size x 128) per query. The first record reaching
    the minimum distance wins ties.
    """

    def __init__(self, gallery: EmbeddingGallery, threshold: float = DEFAULT_MATCH_THRESHOLD):
        self.gallery = gallery
        self.threshold = threshold

    def _as_query(self, embedding) -> np.ndarray:
        query = np.asarray(embedding, dtype=np.float32)
        if query.shape != (EMBEDDING_DIM,):
            raise InvalidVectorShape(
                f"Expected {EMBEDDING_DIM}-d query, got shape {query.shape}"
            )
        return query

    def match(self, embedding) -> MatchResult:
        """
        Find the closest enrolled identity.

        Returns:
            MatchResult with identity_id/name set when the best distance is
            below the threshold, otherwise an empty MatchResult that still
            reports the best distance seen.
        """
        query = self._as_query(embedding)

        best_id = None
        best_name = None
        best_dist = math.inf

        for identity_id, name, known_emb in self.gallery.scan_all():
            dist = float(np.linalg.norm(query - known_emb))
            if dist < best_dist:
                best_dist = dist
                best_id = identity_id
                best_name = name

        if best_id is not None and best_dist < self.threshold:
            return MatchResult(identity_id=best_id, name=best_name, distance=best_dist)

        return MatchResult(distance=best_dist)

    def match_all(self, embedding, top_k: int = 5) -> List[Tuple[int, str, float]]:
        """
        Return top-K records sorted by distance (for debugging/analysis).

        Returns:
            List of (identity_id, name, distance) tuples
        """
        query = self._as_query(embedding)
        scores = [
            (identity_id, name, float(np.linalg.norm(query - known_emb)))
            for identity_id, name, known_emb in self.gallery.scan_all()
        ]
        scores.sort(key=lambda x: x[2])
        return scores[:top_k]

    def get_stats(self) -> dict:
        return {
            'known_faces': len(self.gallery),
            'threshold': self.threshold,
            'metric': 'euclidean',
        }
