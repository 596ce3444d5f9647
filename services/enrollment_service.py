"""
Enrollment Service - registers a named face from a single frame and
removes identities from the gallery.

Enrollment picks the single highest-confidence face in the frame (a
deliberate, one-shot user action), unlike recognition which considers every
face above the detection threshold.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from engines.facial_recognition.errors import (
    DuplicateName, EmptyName, ModelUnavailable, NoFaceDetected, PreprocessingFailed,
    RecognitionError,
)
from engines.facial_recognition.gallery import EMBEDDING_DIM, EmbeddingGallery
from services.recognition_pipeline import (
    DEFAULT_DETECTION_THRESHOLD, crop_face, normalize_crop,
)

logger = logging.getLogger(__name__)


@dataclass
class EnrollmentResult:
    """Result of one registration attempt."""
    identity_id: Optional[int] = None
    name: Optional[str] = None
    confidence: float = 0.0
    error: Optional[str] = None      # RecognitionError.code
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.identity_id is not None

    def to_dict(self) -> dict:
        if self.success:
            return {
                'identity_id': self.identity_id,
                'name': self.name,
                'confidence': round(self.confidence, 3),
            }
        return {'error': self.error, 'message': self.message}


def _flatten_embedding(vector) -> np.ndarray:
    """Accept (128,), (1, 128) or (128, 1); anything else is passed through for the gallery to reject."""
    arr = np.asarray(vector, dtype=np.float32)
    if arr.ndim == 2 and EMBEDDING_DIM in arr.shape and 1 in arr.shape:
        return arr.reshape(-1)
    return arr


class EnrollmentService:
    """
    Validates and commits new (name, embedding) pairs.

    Responsibilities:
        - Name validation and duplicate-name policy
        - Best-of face selection, crop, normalize, embed
        - Gallery insert / delete
    """

    def __init__(self, detector, embedder, gallery: EmbeddingGallery,
                 detection_threshold: float = DEFAULT_DETECTION_THRESHOLD,
                 reject_duplicates: bool = False):
        self.detector = detector
        self.embedder = embedder
        self.gallery = gallery
        self.detection_threshold = detection_threshold
        self.reject_duplicates = reject_duplicates

    def _embed_best_face(self, frame: np.ndarray):
        candidates = self.detector.detect(frame) if frame is not None else []
        if not candidates:
            raise NoFaceDetected("No face detected")

        best = max(candidates, key=lambda c: c.confidence)
        if best.confidence < self.detection_threshold:
            raise NoFaceDetected(
                f"Best face confidence {best.confidence:.2f} is below {self.detection_threshold:.2f}"
            )

        crop = crop_face(frame, best.bbox)
        if crop is None or crop.size == 0:
            raise NoFaceDetected("Detected face lies outside the frame")

        try:
            face = normalize_crop(crop, self.embedder.input_size)
            embedding = self.embedder.embed(face)
        except cv2.error as e:
            raise PreprocessingFailed(f"Face preprocessing failed: {e}") from e
        return _flatten_embedding(embedding), best.confidence

    def register(self, name, frame: np.ndarray) -> EnrollmentResult:
        """
        Enroll `name` from the most prominent face in `frame`.

        Returns:
            EnrollmentResult - on failure the gallery is left untouched
        """
        name = name.strip() if isinstance(name, str) else ''

        try:
            if not name:
                raise EmptyName("Name is required")
            if not (self.detector.available and self.embedder.available):
                raise ModelUnavailable("Face models are not loaded")
            if self.gallery.contains_name(name):
                if self.reject_duplicates:
                    raise DuplicateName(f"'{name}' is already enrolled")
                logger.warning(f"Enrolling an additional template for existing name '{name}'")

            embedding, confidence = self._embed_best_face(frame)
            identity_id = self.gallery.insert(name, embedding)

        except RecognitionError as e:
            logger.info(f"Enrollment rejected ({e.code}): {e.message}")
            return EnrollmentResult(name=name or None, error=e.code, message=e.message)

        logger.info(f"Enrolled {name} (ID: {identity_id}, confidence {confidence:.2f})")
        return EnrollmentResult(identity_id=identity_id, name=name, confidence=confidence)

    def delete(self, name) -> int:
        """Remove every template for `name`. Returns the count removed (0 is not an error)."""
        name = name.strip() if isinstance(name, str) else ''
        if not name:
            return 0
        removed = self.gallery.delete_by_name(name)
        logger.info(f"Deleted {removed} template(s) for '{name}'")
        return removed
