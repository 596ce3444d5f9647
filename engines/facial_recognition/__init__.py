"""
Facial Recognition Engine
Provides face detection, 128-d embedding, gallery storage and distance matching.

Usage:
    from engines.facial_recognition import (
        FaceDetector, FaceEmbedder, EmbeddingGallery, FaceMatcher,
    )

    detector = FaceDetector(gpu_id=0)
    embedder = FaceEmbedder('models/openface_nn4.small2.v1.t7')
    gallery  = EmbeddingGallery()
    matcher  = FaceMatcher(gallery, threshold=0.6)
"""

from engines.facial_recognition.errors import (
    RecognitionError, EmptyName, NoFaceDetected, InvalidVectorShape,
    CameraUnavailable, ModelUnavailable, DuplicateName, PreprocessingFailed,
)
from engines.facial_recognition.detector import FaceDetector, FaceCandidate, BoundingBox
from engines.facial_recognition.gallery import EmbeddingGallery, IdentityRecord, EMBEDDING_DIM
from engines.facial_recognition.embedder import FaceEmbedder
from engines.facial_recognition.matcher import FaceMatcher, MatchResult, DEFAULT_MATCH_THRESHOLD

__all__ = [
    'RecognitionError', 'EmptyName', 'NoFaceDetected', 'InvalidVectorShape',
    'CameraUnavailable', 'ModelUnavailable', 'DuplicateName', 'PreprocessingFailed',
    'FaceDetector', 'FaceCandidate', 'BoundingBox',
    'EmbeddingGallery', 'IdentityRecord', 'EMBEDDING_DIM',
    'FaceEmbedder',
    'FaceMatcher', 'MatchResult', 'DEFAULT_MATCH_THRESHOLD',
]
