"""
Recognition errors - typed failures surfaced by the gallery, matcher,
enrollment flow and frame source.
Each error carries a stable `code` so callers can report it without
inspecting the exception class.
"""


class RecognitionError(Exception):
    """Base class for every recoverable recognition failure."""
    code = 'recognition_error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {'error': self.code, 'message': self.message}


class EmptyName(RecognitionError):
    code = 'empty_name'


class NoFaceDetected(RecognitionError):
    code = 'no_face_detected'


class InvalidVectorShape(RecognitionError, ValueError):
    code = 'invalid_vector_shape'


class CameraUnavailable(RecognitionError):
    code = 'camera_unavailable'


class ModelUnavailable(RecognitionError):
    code = 'model_unavailable'


class DuplicateName(RecognitionError):
    code = 'duplicate_name'


class PreprocessingFailed(RecognitionError):
    code = 'preprocessing_failed'
