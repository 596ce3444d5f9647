"""
Enrollment API - register and remove door identities
Registration uses either an uploaded photo or the live camera frame.
"""
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
import base64
import binascii
import numpy as np
import cv2
import logging

enrollment_bp = Blueprint('enrollment', __name__)
logger = logging.getLogger(__name__)

# RecognitionError.code -> HTTP status
ERROR_STATUS = {
    'empty_name': 400,
    'duplicate_name': 409,
    'no_face_detected': 422,
    'invalid_vector_shape': 422,
    'model_unavailable': 503,
    'camera_unavailable': 503,
    'preprocessing_failed': 422,
}


def _decode_photo(photo_item):
    """
    Decode a photo from the registration request.
    Accepts either:
      - A dict with {data: "data:image/jpeg;base64,..."}
      - A plain base64 data URL string
    Returns: BGR numpy array (for OpenCV/InsightFace) or None
    """
    try:
        if isinstance(photo_item, dict):
            raw = photo_item.get('data', '')
        else:
            raw = photo_item

        # Strip data URI prefix if present
        if ',' in raw:
            raw = raw.split(',', 1)[1]

        img_bytes = base64.b64decode(raw)
        nparr = np.frombuffer(img_bytes, np.uint8)
        return cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except (binascii.Error, TypeError, ValueError, cv2.error) as e:
        logger.warning(f"Photo decode error: {e}")
        return None


@enrollment_bp.route('/register', methods=['POST'])
@jwt_required()
def register():
    """
    Register a name from the most prominent face.
    Body: {"name": "Alice", "photo": "<base64 jpeg>"}  (photo optional: live frame is used)
    """
    data = request.get_json(silent=True) or {}
    name = data.get('name', '')
    photo = data.get('photo')

    frame = None
    if photo:
        frame = _decode_photo(photo)
        if frame is None:
            return jsonify({"error": "invalid_photo", "message": "Photo could not be decoded"}), 400

    try:
        result = current_app.worker.enroll(name, frame)
    except Exception as e:
        logger.error(f"Enrollment error: {e}", exc_info=True)
        return jsonify({"error": str(e)}), 500

    if result.success:
        return jsonify(result.to_dict()), 201
    return jsonify(result.to_dict()), ERROR_STATUS.get(result.error, 400)


@enrollment_bp.route('/<path:name>', methods=['DELETE'])
@jwt_required()
def delete_identity(name):
    """Delete every template for a name. Deleting an unknown name is not an error."""
    try:
        removed = current_app.worker.delete_identity(name)
        return jsonify({"name": name, "removed": removed})
    except Exception as e:
        logger.error(f"Delete error for {name}: {e}")
        return jsonify({"error": str(e)}), 500


@enrollment_bp.route('/identities', methods=['GET'])
@jwt_required()
def list_identities():
    names = current_app.worker.identities()
    return jsonify({
        "identities": [{"name": n, "templates": c} for n, c in names.items()],
        "total": len(names),
    })
