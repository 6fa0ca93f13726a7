import logging
import uuid
from datetime import timedelta

from neuropath.services import analytics
from neuropath.services.data_service import data_service
from neuropath.utils.helpers import _created, _iso, _mean, _opt_str, _parse_dt, _to_float, _to_int, _utcnow

log = logging.getLogger("neuropath.activities")


class ActivityService:
    def build_session(self, data):
        user_id = _to_int(data.get("userId"))
        activity_type = (_opt_str(data, "activityType") or "").strip()
        if user_id is None:
            raise ValueError("userId must be an integer")
        if not activity_type:
            raise ValueError("activityType is required")

        now = _utcnow()
        duration = _to_int(data.get("durationSeconds"), 0)
        completion = _to_float(data.get("completionPercentage"))
        try:
            start = _parse_dt(data.get("startTime")) or now - timedelta(seconds=duration)
        except OverflowError:
            raise ValueError("durationSeconds is out of range")
        return {
            "userId": user_id,
            "username": _opt_str(data, "username") or f"User{user_id}",
            "activityType": activity_type,
            "activityName": analytics.activity_display_name(activity_type),
            "startTime": _iso(start),
            "endTime": _iso(_parse_dt(data.get("endTime")) or now),
            "durationSeconds": duration,
            "score": _to_int(data.get("score")),
            "accuracy": _to_float(data.get("accuracy")),
            "completionPercentage": 100.0 if completion is None else completion,
            "difficulty": _opt_str(data, "difficulty"),
            "activityData": _opt_str(data, "activityData"),
            "moodBefore": _opt_str(data, "moodBefore"),
            "moodAfter": _opt_str(data, "moodAfter"),
            "aiEncouragement": _opt_str(data, "aiEncouragement"),
            "aiFeedback": _opt_str(data, "aiFeedback"),
            "status": "Completed",
        }

    def save_session(self, session):
        session = dict(session)
        session["id"] = str(uuid.uuid4())
        session["createdAt"] = _iso(_utcnow())
        data_service.append_activity_session(session)
        log.info(f"[ACTIVITIES] Saved activity session: {session.get('activityType')} for user {session.get('userId')}")
        return session

    def get_all_sessions(self):
        return data_service.load_activity_sessions()

    def get_user_sessions(self, user_id):
        sessions = [s for s in self.get_all_sessions() if s.get("userId") == user_id]
        return analytics.newest_first(sessions)

    def get_user_summary(self, user_id, today=None):
        sessions = self.get_user_sessions(user_id)
        if not sessions:
            return {"userId": user_id, "totalActivities": 0}

        week_ago = _utcnow() - timedelta(days=7)
        current, _ = analytics.calculate_streaks(analytics.session_dates(sessions), today)
        return {
            "userId": user_id,
            "username": sessions[0].get("username") or "",
            "totalActivities": len(sessions),
            "totalTimeSpentMinutes": int(sum(analytics.num(s, "durationSeconds") for s in sessions)) // 60,
            "lastActivityDate": sessions[0].get("createdAt"),
            "activitiesThisWeek": sum(1 for s in sessions if _created(s) >= week_ago),
            "currentStreak": current,
            "activityBreakdown": analytics.activity_breakdown(sessions),
            "recentActivities": sessions[:10],
            "moodTrends": analytics.mood_trends(sessions),
        }

    def get_therapist_analytics(self):
        sessions = self.get_all_sessions()
        if not sessions:
            return {
                "totalPatients": 0,
                "totalActivitySessions": 0,
                "totalTimeSpentMinutes": 0,
                "overallCompletionRate": 0.0,
                "activityDistribution": [],
                "patientSummaries": [],
                "moodImprovementByActivity": {},
            }

        distribution = [
            {
                "activityType": activity_type,
                "activityName": analytics.activity_display_name(activity_type),
                "sessionCount": len(group),
                "percentage": len(group) / len(sessions) * 100,
            }
            for activity_type, group in analytics.group_by(sessions, "activityType").items()
        ]
        distribution.sort(key=lambda a: a["sessionCount"], reverse=True)

        patients = []
        for user_id, group in analytics.group_by(sessions, "userId").items():
            group = analytics.newest_first(group)
            patients.append({
                "userId": user_id,
                "username": group[0].get("username") or "",
                "totalActivities": len(group),
                "totalTimeSpentMinutes": int(sum(analytics.num(s, "durationSeconds") for s in group)) // 60,
                "lastActivityDate": group[0].get("createdAt"),
                "activityBreakdown": analytics.activity_breakdown(group),
                "moodTrends": analytics.mood_trends(group),
            })
        patients.sort(key=lambda p: p["totalActivities"], reverse=True)

        return {
            "totalPatients": len(patients),
            "totalActivitySessions": len(sessions),
            "totalTimeSpentMinutes": int(sum(analytics.num(s, "durationSeconds") for s in sessions)) // 60,
            "overallCompletionRate": _mean(analytics.num(s, "completionPercentage", 100.0) for s in sessions),
            "activityDistribution": distribution,
            "patientSummaries": patients,
            "moodImprovementByActivity": analytics.mood_improvement_by_activity(sessions),
        }

    def get_activity_type_stats(self):
        return analytics.activity_breakdown(self.get_all_sessions(), by_status=True)

    def get_user_progress(self, user_id):
        sessions = [s for s in self.get_all_sessions() if s.get("userId") == user_id]
        return analytics.activity_breakdown(sessions, by_status=True)

    def get_weekly_activity(self, user_id, today=None):
        sessions = [s for s in self.get_all_sessions() if s.get("userId") == user_id]
        return analytics.weekly_activity_minutes(sessions, today)

    def get_sessions_for_analysis(self, user_id, activity_type=None):
        sessions = analytics.oldest_first([s for s in self.get_all_sessions() if s.get("userId") == user_id])
        if activity_type:
            wanted = activity_type.lower()
            sessions = [s for s in sessions if str(s.get("activityType") or "").lower() == wanted]
        return sessions

activity_service = ActivityService()
