"""
Face Embedder - OpenFace (nn4.small2.v1) through OpenCV DNN.
Turns a normalized face crop into a 128-d float32 identity vector.
"""

import logging
import os
from typing import Optional, Tuple

import cv2
import numpy as np

from engines.facial_recognition.errors import InvalidVectorShape
from engines.facial_recognition.gallery import EMBEDDING_DIM

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = os.path.join('models', 'openface_nn4.small2.v1.t7')


class FaceEmbedder:
    """
    Generates 128-d face embeddings with the OpenFace Torch model.

    Responsibilities:
        - Load the network lazily from disk (unavailable if the file is missing)
        - Convert a face crop into a network blob and run a forward pass
        - Return a flat float32 vector, L2-normalized by the network itself
    """

    input_size: Tuple[int, int] = (96, 96)

    def __init__(self, model_path: Optional[str] = None):
        self.model_path = model_path or DEFAULT_MODEL_PATH
        self.net = None
        self._init_model()

    @property
    def available(self) -> bool:
        return self.net is not None

    @property
    def embedding_dim(self) -> int:
        return EMBEDDING_DIM

    def _init_model(self):
        if not os.path.isfile(self.model_path):
            logger.warning(f"FaceEmbedder: model not found at {self.model_path}")
            return
        try:
            self.net = cv2.dnn.readNetFromTorch(self.model_path)
            logger.info(f"FaceEmbedder: OpenFace model loaded from {self.model_path}")
        except cv2.error as e:
            logger.error(f"FaceEmbedder: failed to load {self.model_path}: {e}")
            self.net = None

    def embed(self, face_crop: np.ndarray) -> np.ndarray:
        """
        Embed a BGR face crop already resized to `input_size`.

        Returns:
            float32 vector of shape (128,)

        Raises:
            InvalidVectorShape: the network produced something other than 128 values
        """
        if not self.available:
            raise RuntimeError("FaceEmbedder: model not available")

        blob = cv2.dnn.blobFromImage(
            face_crop,
            scalefactor=1.0 / 255,
            size=self.input_size,
            mean=(0, 0, 0),
            swapRB=True,
            crop=False,
        )
        self.net.setInput(blob)
        embedding = np.asarray(self.net.forward(), dtype=np.float32).reshape(-1)

        if embedding.shape != (EMBEDDING_DIM,):
            raise InvalidVectorShape(
                f"Expected {EMBEDDING_DIM}-d embedding, got shape {embedding.shape}"
            )
        return embedding

    def get_stats(self) -> dict:
        return {
            'available': self.available,
            'model_path': self.model_path,
            'embedding_dim': EMBEDDING_DIM,
            'input_size': self.input_size,
        }
