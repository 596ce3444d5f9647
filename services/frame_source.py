"""Frame Source - OpenCV camera capture feeding the access loop"""
import logging
from typing import Optional

import cv2
import numpy as np

from engines.facial_recognition.errors import CameraUnavailable

logger = logging.getLogger(__name__)


class CameraFrameSource:
    """Reads BGR frames from a local camera (index) or stream URL."""

    def __init__(self, source=0):
        self.source = source
        self.cap = None

    @property
    def is_open(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    def open(self):
        """Open the capture device; raises CameraUnavailable on failure."""
        if self.is_open:
            return
        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            self.cap.release()
            self.cap = None
            raise CameraUnavailable(f"Could not open camera {self.source}")
        logger.info(f"Camera {self.source} opened")

    def next_frame(self) -> Optional[np.ndarray]:
        """
        Grab the next frame.

        Returns:
            BGR frame, or None when no frame is available this tick

        Raises:
            CameraUnavailable: the device is not open and cannot be opened
        """
        if not self.is_open:
            self.open()

        ok, frame = self.cap.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            logger.info(f"Camera {self.source} released")
