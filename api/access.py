"""Access API - door status and access event history"""
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

access_bp = Blueprint('access', __name__)


@access_bp.route('/status', methods=['GET'])
def get_status():
    return jsonify(current_app.worker.get_status())


@access_bp.route('/events', methods=['GET'])
@jwt_required()
def get_events():
    limit = request.args.get('limit', 50, type=int)
    try:
        db = current_app.db
        if db is not None:
            events = db.get_access_events(limit=limit)
            for event in events:
                event['timestamp'] = event['timestamp'].isoformat()
            return jsonify({"events": events})

        events = current_app.event_log.recent(limit)
        return jsonify({"events": [e.to_dict() for e in events]})
    except Exception as e:
        return jsonify({"error": str(e)}), 500
