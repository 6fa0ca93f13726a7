from flask import Blueprint, request, jsonify, current_app
from neuropath.services.ai_service import ai_service
from neuropath.utils.helpers import _get_int, _get_str, _to_int

ai_bp = Blueprint('ai', __name__, url_prefix='/api/AIAnalysis')

@ai_bp.route('/analyze-game', methods=['POST'])
def analyze_game():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid request"}), 400

    child_name = data.get("childName") or "Player"
    current_pairs = _to_int(data.get("currentPairs"), 0)
    try:
        current_app.logger.info(f"[AI API] Analyzing game for {child_name}: {data.get('gameType')}")
        result = ai_service.analyze_game(
            child_name,
            _to_int(data.get("totalCorrect"), 0),
            _to_int(data.get("totalWrong"), 0),
            _to_int(data.get("currentDifficulty"), 0),
            current_pairs,
        )
        adj = result.get("gameAdjustments") or {}
        current_app.logger.info(f"[AI API] Analysis complete for {child_name}")
        return jsonify({
            "success": True,
            "encouragement": result.get("encouragement"),
            "effortNote": result.get("effortNote"),
            "funMessage": result.get("funMessage"),
            "gameAdjustments": {
                "gridColumns": _get_int(adj, "gridColumns", 4),
                "gridRows": _get_int(adj, "gridRows", 4),
                "totalPairs": _get_int(adj, "totalPairs", current_pairs),
                "flipAnimationMs": _get_int(adj, "flipAnimationMs", 400),
                "visualComplexity": _get_str(adj, "visualComplexity", "colorful"),
                "timePressure": _get_str(adj, "timePressure", "none"),
                "cardDesign": _get_str(adj, "cardDesign", "animals"),
            },
        })
    except Exception as e:
        current_app.logger.error(f"[AI API] Error analyzing game for {child_name}: {e}")
        return jsonify({"error": "AI analysis failed", "message": str(e)}), 500
