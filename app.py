"""
FaceGate Backend - Main Application
Face-recognition door access control: one camera, one door.
"""

import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_socketio import SocketIO
from config import Config
from engines.access_control import AccessController, AccessEventLog, AccessRules
from engines.facial_recognition import EmbeddingGallery, FaceDetector, FaceEmbedder, FaceMatcher
from services.access_worker import AccessWorker
from services.enrollment_service import EnrollmentService
from services.frame_source import CameraFrameSource
from services.recognition_pipeline import RecognitionPipeline
from services.render import SocketIORenderSink

logger = logging.getLogger(__name__)

socketio = SocketIO(cors_allowed_origins="*")


def create_app(config=Config, db=None, worker=None, event_log=None):
    """Build the Flask app around an already-wired AccessWorker."""
    app = Flask(__name__)
    app.config.from_object(config)
    app.url_map.strict_slashes = False

    CORS(app, resources={r"/*": {"origins": "*"}})
    JWTManager(app)
    socketio.init_app(app)

    app.db = db
    app.worker = worker
    app.event_log = event_log if event_log is not None else AccessEventLog(config.EVENT_LOG_SIZE)

    from api.auth import auth_bp
    from api.enrollment import enrollment_bp
    from api.access import access_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(enrollment_bp, url_prefix='/api/enrollment')
    app.register_blueprint(access_bp, url_prefix='/api/access')

    @app.route('/api')
    def api_info():
        return jsonify({
            "message": "FaceGate Backend API",
            "version": "1.0.0",
            "status": "online"
        })

    @app.route('/health')
    def health():
        status = app.worker.get_status() if app.worker is not None else {}
        return jsonify({
            "status": "healthy",
            "database": "connected" if app.db is not None else "disabled",
            "camera": status.get('camera_available', False),
            "recognition": status.get('recognition_available', False),
            "door": status.get('door_state'),
        })

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal error: {error}")
        return jsonify({"error": "Internal server error"}), 500

    return app


def build_worker(config=Config, db=None, event_log=None, render_sink=None):
    """Wire models, gallery, controller and camera into an AccessWorker."""
    detector = FaceDetector(model_name=config.DETECTOR_MODEL, gpu_id=config.DETECTOR_GPU_ID)
    embedder = FaceEmbedder(config.EMBEDDER_MODEL_PATH)
    if not (detector.available and embedder.available):
        logger.warning("Face models unavailable - running in camera-only mode")

    gallery = EmbeddingGallery(store=db)
    matcher = FaceMatcher(gallery, threshold=config.MATCH_THRESHOLD)
    pipeline = RecognitionPipeline(
        detector, embedder, matcher,
        detection_threshold=config.DETECTION_THRESHOLD,
    )
    enrollment = EnrollmentService(
        detector, embedder, gallery,
        detection_threshold=config.DETECTION_THRESHOLD,
        reject_duplicates=config.ENROLLMENT_REJECT_DUPLICATES,
    )
    controller = AccessController(AccessRules(
        confirmation_window=config.CONFIRMATION_WINDOW,
        open_duration=config.OPEN_DURATION,
        miss_tolerance=config.MISS_TOLERANCE,
        extend_on_reconfirm=config.EXTEND_OPEN_ON_RECONFIRM,
    ))
    return AccessWorker(
        frame_source=CameraFrameSource(config.CAMERA_INDEX),
        pipeline=pipeline,
        controller=controller,
        enrollment=enrollment,
        event_log=event_log,
        db=db,
        render_sink=render_sink,
        frame_interval=config.FRAME_INTERVAL_MS / 1000.0,
    )


def main():
    log_dir = os.path.dirname(Config.LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(Config.LOG_FILE),
            logging.StreamHandler()
        ]
    )

    db = None
    if Config.DATABASE_URL:
        from services.db_manager import DBManager
        db = DBManager(Config.DATABASE_URL)
        db.init_schema()
    else:
        logger.warning("DATABASE_URL not set - gallery and access events are in-memory only")

    event_log = AccessEventLog(Config.EVENT_LOG_SIZE)
    worker = build_worker(Config, db=db, event_log=event_log,
                          render_sink=SocketIORenderSink(socketio))
    app = create_app(Config, db=db, worker=worker, event_log=event_log)

    logger.info("Starting FaceGate Backend...")
    logger.info(f"Server running on {Config.HOST}:{Config.PORT}")
    worker.start()
    try:
        socketio.run(
            app,
            host=Config.HOST,
            port=Config.PORT,
            debug=False,
            allow_unsafe_werkzeug=True
        )
    finally:
        worker.stop()
        worker.frame_source.release()
        if db is not None:
            db.close()


if __name__ == '__main__':
    main()
