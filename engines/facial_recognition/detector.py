"""
Face Detector - InsightFace detection-only wrapper.
Turns a BGR frame into a list of FaceCandidate objects (bounding box + confidence).
GPU-accelerated via ONNX Runtime CUDA provider with CPU fallback.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)

# Lazy import - InsightFace may not be installed in all environments
try:
    from insightface.app import FaceAnalysis
    INSIGHTFACE_AVAILABLE = True
except ImportError:
    INSIGHTFACE_AVAILABLE = False
    logger.warning("InsightFace not installed - face detection unavailable")


@dataclass
class BoundingBox:
    """Axis-aligned bounding box in pixel coordinates."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    def clamp(self, frame_width: int, frame_height: int) -> Optional['BoundingBox']:
        """
        Clip the box to the frame bounds.

        Returns:
            A new BoundingBox inside [0, width] x [0, height], or None when the
            clipped box is empty (out of frame or degenerate).
        """
        left = min(max(int(self.left), 0), frame_width)
        top = min(max(int(self.top), 0), frame_height)
        right = min(max(int(self.right), 0), frame_width)
        bottom = min(max(int(self.bottom), 0), frame_height)
        if right <= left or bottom <= top:
            return None
        return BoundingBox(left=left, top=top, right=right, bottom=bottom)

    def to_dict(self) -> dict:
        return {'left': self.left, 'top': self.top, 'right': self.right, 'bottom': self.bottom}


@dataclass
class FaceCandidate:
    """A face region proposed by the detector for one frame."""
    bbox: BoundingBox
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            'location': self.bbox.to_dict(),
            'confidence': round(self.confidence, 3),
        }


class FaceDetector:
    """
    Detects faces in images using the InsightFace detection model.

    Responsibilities:
        - Initialize InsightFace with GPU/CPU fallback
        - Return every detected face region with its confidence

    Does NOT embed or match faces - see FaceEmbedder and FaceMatcher.
    """

    def __init__(self, model_name: str = 'buffalo_l', gpu_id: int = 0,
                 det_size: tuple = (640, 640)):
        self.model_name = model_name
        self.gpu_id = gpu_id
        self.det_size = det_size
        self.app = None

        if INSIGHTFACE_AVAILABLE:
            self._init_model()

    @property
    def available(self) -> bool:
        return self.app is not None

    def _init_model(self):
        """Initialize InsightFace - tries GPU first, falls back to CPU."""
        provider_options = [
            ['CUDAExecutionProvider', 'CPUExecutionProvider'],
            ['CPUExecutionProvider'],
        ]
        for providers in provider_options:
            try:
                self.app = FaceAnalysis(
                    name=self.model_name,
                    allowed_modules=['detection'],
                    providers=providers,
                )
                self.app.prepare(ctx_id=self.gpu_id, det_size=self.det_size)
                logger.info(f"FaceDetector: {self.model_name} loaded with {providers}")
                return
            except Exception as e:
                logger.warning(f"FaceDetector init failed with {providers}: {e}")
                self.app = None
        logger.error("FaceDetector: could not initialize with any provider")

    def detect(self, frame: np.ndarray) -> List[FaceCandidate]:
        """
        Detect all faces in a BGR frame.

        Args:
            frame: BGR image (numpy array, OpenCV format)

        Returns:
            List of FaceCandidate, unfiltered by confidence
        """
        if not self.available:
            return []

        try:
            raw_faces = self.app.get(frame)
        except Exception as e:
            logger.error(f"Face detection error: {e}")
            return []

        results = []
        for face in raw_faces:
            bbox = np.asarray(face.bbox).astype(int)
            results.append(FaceCandidate(
                bbox=BoundingBox(
                    left=int(bbox[0]),
                    top=int(bbox[1]),
                    right=int(bbox[2]),
                    bottom=int(bbox[3]),
                ),
                confidence=float(getattr(face, 'det_score', 0.0)),
            ))
        return results

    def get_stats(self) -> dict:
        return {
            'available': self.available,
            'model': self.model_name,
            'gpu_id': self.gpu_id,
            'det_size': self.det_size,
        }
