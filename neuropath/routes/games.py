from flask import Blueprint, request, jsonify, current_app
from neuropath.services import analytics, reports
from neuropath.services.ai_service import ai_service
from neuropath.services.game_stats_service import game_stats_service

games_bp = Blueprint('games', __name__, url_prefix='/api/json-stats')

@games_bp.route('/save', methods=['POST'])
def save_game_session():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Invalid request"}), 400
    current_app.logger.info(f"[JSON-STATS] Saving game session: {data.get('gameType')} for user {data.get('userId')}")
    try:
        entry = game_stats_service.build_entry(data)
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    try:
        saved = game_stats_service.save_session(entry)
        return jsonify({
            "success": True,
            "message": "Game session saved successfully",
            "sessionId": saved["id"],
            "score": saved["score"],
            "savedAt": saved["createdAt"],
        })
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error saving session: {e}")
        return jsonify({"success": False, "error": str(e)}), 500

@games_bp.route('/sessions', methods=['GET'])
def get_all_sessions():
    try:
        return jsonify(game_stats_service.get_all_sessions())
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting all sessions: {e}")
        return jsonify({"error": str(e)}), 500

@games_bp.route('/sessions/user/<int:user_id>', methods=['GET'])
def get_user_sessions(user_id):
    try:
        return jsonify(game_stats_service.get_user_sessions(user_id))
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting user sessions: {e}")
        return jsonify({"error": str(e)}), 500

@games_bp.route('/sessions/game/<game_type>', methods=['GET'])
def get_sessions_by_game(game_type):
    try:
        return jsonify(game_stats_service.get_sessions_by_game_type(game_type))
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting {game_type} sessions: {e}")
        return jsonify({"error": str(e)}), 500

@games_bp.route('/summary/<int:user_id>', methods=['GET'])
def get_user_summary(user_id):
    try:
        return jsonify(game_stats_service.get_user_summary(user_id))
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting user summary: {e}")
        return jsonify({"error": str(e)}), 500

@games_bp.route('/summaries', methods=['GET'])
def get_all_summaries():
    try:
        return jsonify(game_stats_service.get_all_user_summaries())
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting summaries: {e}")
        return jsonify({"error": str(e)}), 500

@games_bp.route('/therapist/analytics', methods=['GET'])
def get_therapist_analytics():
    try:
        sessions = game_stats_service.get_all_sessions()
        data = game_stats_service.get_therapist_analytics(sessions)
        return jsonify(reports.therapist_dashboard(data, sessions))
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting therapist analytics: {e}")
        return jsonify({"error": str(e)}), 500

@games_bp.route('/therapist/user/<int:user_id>/analysis', methods=['GET'])
def get_user_analysis(user_id):
    try:
        sessions = analytics.oldest_first(game_stats_service.get_user_sessions(user_id))
        if not sessions:
            return jsonify({"message": "No sessions found for this user", "hasData": False})
        return jsonify(reports.user_analysis(user_id, sessions))
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error analysing user {user_id}: {e}")
        return jsonify({"error": str(e)}), 500

def _unified_analysis(user_id, requester_type, game_type):
    is_therapist = requester_type.lower() == "therapist"
    current_app.logger.info(
        f"[AI-UNIFIED] Starting AI analysis for user {user_id}, requester: {requester_type}, game: {game_type or 'all'}"
    )
    try:
        sessions = analytics.oldest_first(game_stats_service.get_user_sessions(user_id))
        if game_type:
            sessions = [s for s in sessions if str(s.get("gameType") or "").lower() == game_type.lower()]
        if not sessions:
            return jsonify({
                "success": False,
                "message": "No sessions found for this user",
                "targetAudience": requester_type,
                "analysis": ai_service.default_unified_analysis(is_therapist, game_type or "MemoryMatch"),
            })

        focus = game_type or sessions[-1].get("gameType")
        username = sessions[0].get("username") or f"Player_{user_id}"
        data = reports.build_unified_analysis_data(username, sessions, is_therapist, game_type)
        analysis = ai_service.unified_game_analysis(data, is_therapist, focus)
        return jsonify({
            "success": True,
            "userId": user_id,
            "username": username,
            "targetAudience": requester_type,
            "gameType": focus,
            "totalSessions": len(sessions),
            "analysis": analysis,
        })
    except Exception as e:
        current_app.logger.error(f"[AI-UNIFIED] Error: {e}")
        return jsonify({
            "success": False,
            "error": str(e),
            "targetAudience": requester_type,
            "analysis": ai_service.default_unified_analysis(is_therapist, game_type or "MemoryMatch"),
        })

@games_bp.route('/ai-analysis/<int:user_id>', methods=['GET'])
def get_unified_ai_analysis(user_id):
    requester_type = request.args.get("requesterType") or "user"
    return _unified_analysis(user_id, requester_type, request.args.get("gameType"))

@games_bp.route('/user/<int:user_id>/ai-feedback', methods=['GET'])
def get_user_ai_feedback(user_id):
    return _unified_analysis(user_id, "user", request.args.get("gameType"))

@games_bp.route('/therapist/user/<int:user_id>/ai-analysis', methods=['GET'])
def get_therapist_ai_analysis(user_id):
    current_app.logger.info(f"[AI-ANALYSIS] Starting therapist AI analysis for user {user_id}")
    try:
        sessions = analytics.oldest_first(game_stats_service.get_user_sessions(user_id))
        if not sessions:
            return jsonify({"success": False, "message": "No sessions found for this user", "aiAnalysis": None})
        username = sessions[0].get("username") or f"User_{user_id}"
        summary = reports.build_user_data_summary(username, sessions)
        return jsonify({
            "success": True,
            "userId": user_id,
            "username": username,
            "totalSessions": len(sessions),
            "aiAnalysis": ai_service.therapist_game_analysis(summary),
        })
    except Exception as e:
        current_app.logger.error(f"[AI-ANALYSIS] Error: {e}")
        return jsonify({
            "success": False,
            "error": str(e),
            "aiAnalysis": ai_service.fallback_therapist_analysis(),
        })

@games_bp.route('/progress/<int:user_id>', methods=['GET'])
def get_progress_data(user_id):
    try:
        return jsonify(reports.progress_page(game_stats_service.get_user_summary(user_id)))
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting progress data: {e}")
        return jsonify({"error": str(e)}), 500

@games_bp.route('/statistics/<int:user_id>', methods=['GET'])
def get_statistics_data(user_id):
    try:
        return jsonify(reports.statistics_page(game_stats_service.get_user_summary(user_id)))
    except Exception as e:
        current_app.logger.error(f"[JSON-STATS] Error getting statistics data: {e}")
        return jsonify({"error": str(e)}), 500
