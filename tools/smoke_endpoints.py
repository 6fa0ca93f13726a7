import requests
import json
import os
import sys

BASE = os.environ.get("NEUROPATH_BASE_URL", "http://127.0.0.1:7860")

def get_json(path):
    r = requests.get(BASE + path, timeout=10)
    try:
        return r.status_code, r.json()
    except ValueError:
        return r.status_code, {"text": r.text}

def post_json(path, data, timeout=20):
    r = requests.post(BASE + path, headers={"Content-Type": "application/json"}, data=json.dumps(data), timeout=timeout)
    try:
        return r.status_code, r.json()
    except ValueError:
        return r.status_code, {"text": r.text}

def main():
    code, saved = post_json("/api/json-stats/save", {
        "userId": 999, "username": "Smoke Test", "gameType": "MemoryMatch",
        "difficulty": 1, "score": 120, "accuracy": 80.0, "totalMoves": 20, "timeTakenSeconds": 45,
    })
    print("save_game", code, saved.get("success"), saved.get("sessionId"))
    code, summary = get_json("/api/json-stats/summary/999")
    print("summary", code, summary.get("totalGamesPlayed"), summary.get("currentStreak"))
    code, stats = get_json("/api/json-stats/statistics/999")
    print("statistics", code, len(stats.get("achievements", [])))
    code, dash = get_json("/api/json-stats/therapist/analytics")
    print("therapist_analytics", code, dash.get("totalUsers"))

    code, saved = post_json("/api/activities/save", {
        "userId": 999, "activityType": "BreathingExercise", "durationSeconds": 300,
        "moodBefore": "Stressed", "moodAfter": "Calm",
    })
    print("save_activity", code, saved.get("success"))
    code, weekly = get_json("/api/activities/weekly/999")
    print("activity_weekly", code, len(weekly) if isinstance(weekly, list) else weekly)

    code, users = get_json("/api/json-auth/users")
    print("users", code, len(users) if isinstance(users, list) else users)

    # Slow when the LLM server is up; falls back locally when it is not.
    code, ai = post_json("/api/AIAnalysis/analyze-game", {
        "childName": "Smoke", "gameType": "MemoryMatch", "currentDifficulty": 1,
        "totalCorrect": 8, "totalWrong": 2, "currentPairs": 8,
    }, timeout=60)
    print("analyze_game", code, ai.get("success"), ai.get("encouragement"))

if __name__ == "__main__":
    try:
        main()
        sys.exit(0)
    except requests.RequestException as e:
        print("error", str(e))
        sys.exit(1)
