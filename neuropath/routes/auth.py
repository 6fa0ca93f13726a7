from flask import Blueprint, request, jsonify, current_app, g
from neuropath.services.auth_service import auth_service, public_user, token_required

auth_bp = Blueprint('auth', __name__, url_prefix='/api/json-auth')

@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "message": "Invalid request"}), 400
    username = str(data.get("username") or "")
    password = str(data.get("password") or "")
    current_app.logger.info(f"JSON Login attempt for: {username}")
    try:
        user, message = auth_service.authenticate(username, password)
        if user is None:
            return jsonify({"success": False, "message": message}), 401
        token = auth_service.create_token(user)
        current_app.logger.info(f"JSON Login successful for: {user.get('fullName')}")
        return jsonify({
            "success": True,
            "message": message,
            "token": token,
            "user": public_user(user),
        })
    except Exception as e:
        current_app.logger.error(f"JSON Login error: {e}")
        return jsonify({"success": False, "message": "An error occurred during login"}), 500

@auth_bp.route('/users', methods=['GET'])
def get_all_users():
    try:
        return jsonify([public_user(u) for u in auth_service.get_all_users()])
    except Exception as e:
        current_app.logger.error(f"Error getting users: {e}")
        return jsonify({"message": "Error retrieving users"}), 500

@auth_bp.route('/users/<int:user_id>', methods=['GET'])
def get_user_by_id(user_id):
    user = auth_service.get_user_by_id(user_id)
    if user is None:
        return jsonify({"message": "User not found"}), 404
    return jsonify(public_user(user))

@auth_bp.route('/me', methods=['GET'])
@token_required
def me():
    claims = g.claims
    user = auth_service.get_user_by_id(int(claims["sub"])) if str(claims.get("sub", "")).isdigit() else None
    if user is None:
        return jsonify({"message": "User not found"}), 404
    return jsonify(public_user(user))
