import logging
import uuid
from datetime import datetime, timedelta

from neuropath.services import analytics
from neuropath.services.data_service import data_service
from neuropath.utils.helpers import _created, _iso, _opt_str, _parse_dt, _to_float, _to_int, _utcnow

log = logging.getLogger("neuropath.games")

OPTIONAL_INT_FIELDS = (
    "matchedPairs", "totalPairs", "itemsSorted", "totalItems",
    "patternSize", "gridSize", "totalRounds", "correctPatterns",
)


class GameStatsService:
    def build_entry(self, data):
        """Turn a save request body into a stored game record.

        Raises ``ValueError`` for requests the store can't key on.
        """
        user_id = _to_int(data.get("userId"))
        game_type = (_opt_str(data, "gameType") or "").strip()
        if user_id is None:
            raise ValueError("userId must be an integer")
        if not game_type:
            raise ValueError("gameType is required")

        now = _utcnow()
        time_taken = _to_int(data.get("timeTakenSeconds"), 0)
        difficulty = _to_int(data.get("difficulty"), 0)
        try:
            start = _parse_dt(data.get("startTime")) or now - timedelta(seconds=time_taken)
        except OverflowError:
            raise ValueError("timeTakenSeconds is out of range")
        end = _parse_dt(data.get("endTime")) or now

        entry = {
            "userId": user_id,
            "username": _opt_str(data, "username") or f"User{user_id}",
            "gameType": game_type,
            "gameMode": _opt_str(data, "gameMode") or "Practice",
            "difficulty": difficulty,
            "difficultyName": _opt_str(data, "difficultyName") or analytics.difficulty_name(difficulty),
            "score": _to_int(data.get("score"), 0),
            "accuracy": _to_float(data.get("accuracy"), 0.0),
            "totalMoves": _to_int(data.get("totalMoves"), 0),
            "correctMoves": _to_int(data.get("correctMoves"), 0),
            "errorCount": _to_int(data.get("errorCount"), 0),
            "timeTakenSeconds": time_taken,
            "averageReactionTimeMs": _to_float(data.get("averageReactionTimeMs")),
            "aiEncouragement": _opt_str(data, "aiEncouragement"),
            "aiFunMessage": _opt_str(data, "aiFunMessage"),
            "aiEffortNote": _opt_str(data, "aiEffortNote"),
            "recommendedDifficulty": _opt_str(data, "recommendedDifficulty"),
            "aiConfidence": _to_float(data.get("aiConfidence")),
            "startTime": _iso(start),
            "endTime": _iso(end),
            "notes": _opt_str(data, "notes"),
            "status": "Completed",
        }
        for key in OPTIONAL_INT_FIELDS:
            entry[key] = _to_int(data.get(key))
        return entry

    def save_session(self, entry):
        entry = dict(entry)
        entry["id"] = str(uuid.uuid4())
        entry["createdAt"] = _iso(_utcnow())
        data_service.append_game_session(entry)
        log.info(f"[JSON-STATS] Saved game session: {entry.get('gameType')} for user {entry.get('userId')} - Score: {entry.get('score')}")
        return entry

    def get_all_sessions(self):
        return data_service.load_game_sessions()

    def get_user_sessions(self, user_id):
        sessions = [s for s in self.get_all_sessions() if s.get("userId") == user_id]
        return analytics.newest_first(sessions)

    def get_sessions_by_game_type(self, game_type):
        wanted = (game_type or "").lower()
        sessions = [s for s in self.get_all_sessions() if str(s.get("gameType") or "").lower() == wanted]
        return analytics.newest_first(sessions)

    def game_type_stats(self, game_type, group):
        return {
            "gameType": game_type,
            "gameIcon": analytics.game_icon(game_type),
            "gameColor": analytics.game_color(game_type),
            "gamesPlayed": len(group),
            "averageScore": analytics.avg(group, "score"),
            "bestScore": int(max(analytics.num(s, "score") for s in group)),
            "averageAccuracy": analytics.avg(group, "accuracy"),
            "totalTimePlayed": int(sum(analytics.num(s, "timeTakenSeconds") for s in group)),
            "currentLevel": int(max(analytics.num(s, "difficulty") for s in group)),
            "skillProgress": analytics.skill_progress(group),
            "averageMoves": analytics.avg(group, "totalMoves"),
            "averageReactionTime": analytics.avg_present(group, "averageReactionTimeMs"),
        }

    def get_user_summary(self, user_id, today=None):
        sessions = self.get_user_sessions(user_id)
        if not sessions:
            return {
                "userId": user_id,
                "username": "",
                "totalGamesPlayed": 0,
                "totalTimePlayed": 0,
                "averageScore": 0.0,
                "bestScore": 0,
                "averageAccuracy": 0.0,
                "currentStreak": 0,
                "longestStreak": 0,
                "lastPlayedDate": None,
                "gameTypeBreakdown": [],
                "weeklyActivity": [],
                "recentSessions": [],
            }

        today = today or _utcnow().date()
        current, longest = analytics.calculate_streaks(analytics.session_dates(sessions), today)
        breakdown = [
            self.game_type_stats(game_type, group)
            for game_type, group in analytics.group_by(sessions, "gameType").items()
        ]
        return {
            "userId": user_id,
            "username": sessions[0].get("username") or "",
            "totalGamesPlayed": len(sessions),
            "totalTimePlayed": int(sum(analytics.num(s, "timeTakenSeconds") for s in sessions)),
            "averageScore": analytics.avg(sessions, "score"),
            "bestScore": int(max(analytics.num(s, "score") for s in sessions)),
            "averageAccuracy": analytics.avg(sessions, "accuracy"),
            "currentStreak": current,
            "longestStreak": longest,
            "lastPlayedDate": sessions[0].get("createdAt"),
            "gameTypeBreakdown": breakdown,
            "weeklyActivity": analytics.weekly_game_activity(sessions, today),
            "recentSessions": sessions[:10],
        }

    def get_all_user_summaries(self, today=None):
        user_ids = []
        for s in self.get_all_sessions():
            uid = s.get("userId")
            if uid not in user_ids:
                user_ids.append(uid)
        summaries = [self.get_user_summary(uid, today) for uid in user_ids]
        summaries.sort(key=lambda s: _parse_dt(s.get("lastPlayedDate")) or datetime.min, reverse=True)
        return summaries

    def get_therapist_analytics(self, sessions=None):
        sessions = self.get_all_sessions() if sessions is None else sessions
        week_ago = _utcnow() - timedelta(days=7)

        patients = []
        for user_id, group in analytics.group_by(sessions, "userId").items():
            group = analytics.newest_first(group)
            latest = group[0]
            name_parts = (latest.get("username") or "").split(" ")
            patients.append({
                "userId": user_id,
                "username": latest.get("username") or "",
                "firstName": name_parts[0],
                "lastName": name_parts[-1],
                "totalSessions": len(group),
                "averageScore": analytics.avg(group, "score"),
                "bestScore": int(max(analytics.num(s, "score") for s in group)),
                "averageAccuracy": analytics.avg(group, "accuracy"),
                "lastSessionDate": latest.get("createdAt"),
                "progressTrend": analytics.progress_trend(group),
                "gameTypeBreakdown": {k: len(v) for k, v in analytics.group_by(group, "gameType").items()},
            })

        total = len(sessions)
        distribution = [
            {
                "gameType": game_type,
                "sessionCount": len(group),
                "percentage": len(group) / total * 100 if total else 0.0,
            }
            for game_type, group in analytics.group_by(sessions, "gameType").items()
        ]
        distribution.sort(key=lambda g: g["sessionCount"], reverse=True)

        return {
            "totalPatients": len(patients),
            "totalSessionsThisWeek": sum(1 for s in sessions if _created(s) >= week_ago),
            "averagePatientScore": analytics.avg(sessions, "score"),
            "patientSummaries": patients,
            "gameDistribution": distribution,
        }

game_stats_service = GameStatsService()
