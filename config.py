"""
Configuration Management for FaceGate
Loads environment variables and provides configuration settings
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application configuration"""

    # Database (empty = in-memory gallery, nothing persisted)
    DATABASE_URL = os.getenv('DATABASE_URL', '')

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    # JWT
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = 86400  # 24 hours

    # Server
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 5000))

    # Camera
    CAMERA_INDEX = int(os.getenv('CAMERA_INDEX', 0))
    FRAME_INTERVAL_MS = int(os.getenv('FRAME_INTERVAL_MS', 60))

    # Models
    DETECTOR_MODEL = os.getenv('DETECTOR_MODEL', 'buffalo_l')
    DETECTOR_GPU_ID = int(os.getenv('DETECTOR_GPU_ID', 0))
    EMBEDDER_MODEL_PATH = os.getenv('EMBEDDER_MODEL_PATH', 'models/openface_nn4.small2.v1.t7')

    # Recognition
    DETECTION_THRESHOLD = float(os.getenv('DETECTION_THRESHOLD', 0.5))
    MATCH_THRESHOLD = float(os.getenv('MATCH_THRESHOLD', 0.6))

    # Door
    CONFIRMATION_WINDOW = float(os.getenv('CONFIRMATION_WINDOW', 3.0))
    OPEN_DURATION = float(os.getenv('OPEN_DURATION', 3.0))
    MISS_TOLERANCE = int(os.getenv('MISS_TOLERANCE', 0))
    EXTEND_OPEN_ON_RECONFIRM = _env_bool('EXTEND_OPEN_ON_RECONFIRM', False)
    EVENT_LOG_SIZE = int(os.getenv('EVENT_LOG_SIZE', 500))

    # Enrollment
    ENROLLMENT_REJECT_DUPLICATES = _env_bool('ENROLLMENT_REJECT_DUPLICATES', False)

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')
