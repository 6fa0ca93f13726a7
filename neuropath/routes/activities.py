from flask import Blueprint, request, jsonify, current_app
from neuropath.services import reports
from neuropath.services.activity_service import activity_service
from neuropath.services.ai_service import ai_service

activities_bp = Blueprint('activities', __name__, url_prefix='/api/activities')

@activities_bp.route('/save', methods=['POST'])
def save_activity_session():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Invalid request"}), 400
    current_app.logger.info(f"[ACTIVITIES] Saving activity session: {data.get('activityType')} for user {data.get('userId')}")
    try:
        session = activity_service.build_session(data)
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    try:
        saved = activity_service.save_session(session)
        return jsonify({
            "success": True,
            "message": "Activity session saved successfully",
            "sessionId": saved["id"],
            "savedAt": saved["createdAt"],
        })
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error saving session: {e}")
        return jsonify({"success": False, "error": str(e)}), 500

@activities_bp.route('/sessions', methods=['GET'])
def get_all_sessions():
    try:
        return jsonify(activity_service.get_all_sessions())
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error getting sessions: {e}")
        return jsonify({"error": str(e)}), 500

@activities_bp.route('/sessions/user/<int:user_id>', methods=['GET'])
def get_user_sessions(user_id):
    try:
        return jsonify(activity_service.get_user_sessions(user_id))
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error getting user sessions: {e}")
        return jsonify({"error": str(e)}), 500

@activities_bp.route('/summary/<int:user_id>', methods=['GET'])
def get_user_summary(user_id):
    try:
        return jsonify(activity_service.get_user_summary(user_id))
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error getting summary: {e}")
        return jsonify({"error": str(e)}), 500

@activities_bp.route('/therapist/analytics', methods=['GET'])
def get_therapist_analytics():
    try:
        return jsonify(activity_service.get_therapist_analytics())
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error getting therapist analytics: {e}")
        return jsonify({"error": str(e)}), 500

@activities_bp.route('/therapist/activity-stats', methods=['GET'])
def get_activity_type_stats():
    try:
        return jsonify(activity_service.get_activity_type_stats())
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error getting activity stats: {e}")
        return jsonify({"error": str(e)}), 500

@activities_bp.route('/ai-analysis/<int:user_id>', methods=['GET'])
def get_activity_ai_analysis(user_id):
    activity_type = request.args.get("activityType") or None
    current_app.logger.info(f"[ACTIVITY-AI] Starting AI analysis for user {user_id}, activity: {activity_type or 'all'}")
    try:
        sessions = activity_service.get_sessions_for_analysis(user_id, activity_type)
        if not sessions:
            return jsonify({
                "success": False,
                "message": "No activity sessions found for this user",
                "analysis": ai_service.default_activity_analysis(),
            })
        username = sessions[0].get("username") or f"User_{user_id}"
        data = reports.build_activity_analysis_data(username, sessions)
        return jsonify({
            "success": True,
            "userId": user_id,
            "username": username,
            "activityType": activity_type,
            "totalSessions": len(sessions),
            "analysis": ai_service.activity_analysis(data, activity_type),
        })
    except Exception as e:
        current_app.logger.error(f"[ACTIVITY-AI] Error: {e}")
        return jsonify({"success": False, "error": str(e), "analysis": ai_service.default_activity_analysis()})

@activities_bp.route('/progress/<int:user_id>', methods=['GET'])
def get_activity_progress(user_id):
    try:
        progress = activity_service.get_user_progress(user_id)
        if not progress:
            current_app.logger.warning(f"[ACTIVITIES] No sessions found for userId: {user_id}")
        return jsonify(progress)
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error getting activity progress: {e}")
        return jsonify([])

@activities_bp.route('/weekly/<int:user_id>', methods=['GET'])
def get_weekly_activity(user_id):
    try:
        return jsonify(activity_service.get_weekly_activity(user_id))
    except Exception as e:
        current_app.logger.error(f"[ACTIVITIES] Error getting weekly activity: {e}")
        return jsonify({"error": str(e)}), 500

@activities_bp.route('/ai-curate-sounds', methods=['POST'])
def ai_curate_sounds():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Invalid request"}), 400
    mood = str(data.get("userMood") or "")
    sounds = data.get("availableSounds")
    sounds = [s for s in sounds if isinstance(s, dict)] if isinstance(sounds, list) else []
    previous = data.get("previousSounds")
    previous = [p for p in previous if isinstance(p, str)] if isinstance(previous, list) else []
    return jsonify(ai_service.curate_sounds(mood, sounds, previous))
