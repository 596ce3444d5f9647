"""
Recognition Pipeline for the door camera

Per frame: detect faces, crop each confident region, embed it, match it
against the gallery, and aggregate a frame-level authorization signal.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import cv2
import numpy as np

from engines.facial_recognition.detector import BoundingBox, FaceCandidate
from engines.facial_recognition.errors import RecognitionError
from engines.facial_recognition.matcher import MatchResult

logger = logging.getLogger(__name__)

DEFAULT_DETECTION_THRESHOLD = 0.5


class FrameStatus(str, Enum):
    DEGRADED = 'degraded'      # detector/embedder unavailable, no inference attempted
    NO_FACE = 'no_face'        # no candidate passed the confidence filter
    UNMATCHED = 'unmatched'    # faces present, none recognized
    MATCHED = 'matched'        # at least one face recognized


@dataclass
class FaceRecognition:
    """Outcome for one detector candidate."""
    candidate: FaceCandidate
    match: Optional[MatchResult] = None
    error: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.match is not None and self.match.matched

    def to_dict(self) -> dict:
        data = self.candidate.to_dict()
        data['match'] = self.match.to_dict() if self.match else None
        data['error'] = self.error
        return data


@dataclass
class FrameResult:
    """Frame-level recognition result consumed by the AccessController."""
    status: FrameStatus
    faces: List[FaceRecognition] = field(default_factory=list)
    recognized_id: Optional[int] = None
    recognized_name: Optional[str] = None

    @property
    def authorized(self) -> bool:
        return self.recognized_id is not None

    @property
    def degraded(self) -> bool:
        return self.status == FrameStatus.DEGRADED

    def to_dict(self) -> dict:
        return {
            'status': self.status.value,
            'authorized': self.authorized,
            'recognized_id': self.recognized_id,
            'recognized_name': self.recognized_name,
            'faces': [f.to_dict() for f in self.faces],
        }


def crop_face(frame: np.ndarray, bbox: BoundingBox) -> Optional[np.ndarray]:
    """Crop a face region clamped to the frame; None for out-of-frame/degenerate boxes."""
    if frame is None or frame.ndim < 2:
        return None
    height, width = frame.shape[:2]
    clamped = bbox.clamp(width, height)
    if clamped is None:
        return None
    return frame[clamped.top:clamped.bottom, clamped.left:clamped.right]


def normalize_crop(crop: np.ndarray, size) -> np.ndarray:
    """Resize a crop to the embedder's expected (width, height)."""
    return cv2.resize(crop, tuple(size), interpolation=cv2.INTER_LINEAR)


class RecognitionPipeline:
    """Runs detector -> embedder -> matcher on each frame."""

    def __init__(self, detector, embedder, matcher,
                 detection_threshold: float = DEFAULT_DETECTION_THRESHOLD):
        """
        Args:
            detector: FaceDetector (or any object with `available` and `detect`)
            embedder: FaceEmbedder (`available`, `input_size`, `embed`)
            matcher: FaceMatcher
            detection_threshold: minimum detector confidence to consider a face
        """
        self.detector = detector
        self.embedder = embedder
        self.matcher = matcher
        self.detection_threshold = detection_threshold

    @property
    def available(self) -> bool:
        return bool(self.detector.available and self.embedder.available)

    def _recognize(self, frame: np.ndarray, candidate: FaceCandidate) -> FaceRecognition:
        crop = crop_face(frame, candidate.bbox)
        if crop is None or crop.size == 0:
            logger.debug(f"Skipping out-of-frame face box {candidate.bbox.to_dict()}")
            return FaceRecognition(candidate=candidate, error='invalid_bbox')

        try:
            face = normalize_crop(crop, self.embedder.input_size)
            embedding = self.embedder.embed(face)
            match = self.matcher.match(embedding)
        except RecognitionError as e:
            logger.warning(f"Face skipped: {e.message}")
            return FaceRecognition(candidate=candidate, error=e.code)
        except cv2.error as e:
            logger.error(f"Face preprocessing error: {e}")
            return FaceRecognition(candidate=candidate, error='preprocessing_failed')

        return FaceRecognition(candidate=candidate, match=match)

    def process_frame(self, frame: np.ndarray) -> FrameResult:
        """
        Recognize every confident face in a BGR frame.

        The recognized identity is the matched face with the highest
        detector confidence.
        """
        if not self.available:
            return FrameResult(status=FrameStatus.DEGRADED)

        candidates = [
            c for c in self.detector.detect(frame)
            if c.confidence >= self.detection_threshold
        ]
        if not candidates:
            return FrameResult(status=FrameStatus.NO_FACE)

        faces = [self._recognize(frame, c) for c in candidates]
        matched = [f for f in faces if f.matched]
        if not matched:
            return FrameResult(status=FrameStatus.UNMATCHED, faces=faces)

        best = max(matched, key=lambda f: f.candidate.confidence)
        logger.debug(
            f"Recognized {best.match.name} (ID: {best.match.identity_id}, "
            f"distance {best.match.distance:.3f}) among {len(faces)} face(s)"
        )
        return FrameResult(
            status=FrameStatus.MATCHED,
            faces=faces,
            recognized_id=best.match.identity_id,
            recognized_name=best.match.name,
        )

    def get_stats(self) -> dict:
        return {
            'available': self.available,
            'detection_threshold': self.detection_threshold,
            'detector': self.detector.get_stats(),
            'embedder': self.embedder.get_stats(),
            'matcher': self.matcher.get_stats(),
        }
