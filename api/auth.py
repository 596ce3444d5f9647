"""Authentication API"""
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token
import bcrypt

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        return jsonify({"error": "Username and password required"}), 400

    db = current_app.db
    if db is None:
        return jsonify({"error": "Admin login requires a database"}), 503

    try:
        user = db.get_admin_user(username)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        if bcrypt.checkpw(password.encode('utf-8'), user['password_hash'].encode('utf-8')):
            access_token = create_access_token(identity=username)
            return jsonify({
                "token": access_token,
                "user": {
                    "username": user['username'],
                    "role": user.get('role', 'admin')
                }
            })
        return jsonify({"error": "Invalid credentials"}), 401

    except Exception as e:
        return jsonify({"error": str(e)}), 500
