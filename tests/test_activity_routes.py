import concurrent.futures

from neuropath.config import config
from neuropath.services.ai_service import FALLBACK_MIXES
from conftest import write_json

SOUNDS = [
    {"name": "Rain", "category": "Nature", "description": "Soft rain"},
    {"name": "Singing Bowls", "category": "Instruments", "description": "Resonant bowls"},
    {"name": "Brown Noise", "category": "Noise", "description": "Deep noise"},
]


def save(client, **overrides):
    body = {
        "userId": 3, "username": "Lee Chen", "activityType": "BreathingExercise",
        "durationSeconds": 300, "moodBefore": "Stressed", "moodAfter": "Calm",
    }
    body.update(overrides)
    return client.post("/api/activities/save", json=body)


def test_save_activity(client):
    resp = save(client)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["message"] == "Activity session saved successfully"

    stored = client.get("/api/activities/sessions").get_json()
    assert len(stored) == 1
    assert stored[0]["activityName"] == "Breathing Exercise"
    assert stored[0]["completionPercentage"] == 100.0
    assert stored[0]["status"] == "Completed"


def test_save_activity_requires_type(client):
    resp = save(client, activityType=" ")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "activityType is required"


def test_save_activity_rejects_non_text_mood(client):
    resp = save(client, moodBefore=["Sad"])
    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": "moodBefore must be a string"}
    assert client.get("/api/activities/sessions").get_json() == []

    save(client)
    body = client.get("/api/activities/summary/3").get_json()
    assert body["totalActivities"] == 1


def test_save_activity_with_huge_duration(client):
    resp = save(client, durationSeconds=10 ** 20)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "durationSeconds is out of range"


def test_activity_routes_reject_non_object_bodies(client, llm):
    resp = client.post("/api/activities/save", json=[{"userId": 3}])
    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": "Invalid request"}

    resp = client.post("/api/activities/ai-curate-sounds", json=["calm"])
    assert resp.status_code == 400
    assert llm.calls == []


def test_summary(client):
    assert client.get("/api/activities/summary/3").get_json() == {"userId": 3, "totalActivities": 0}

    save(client)
    save(client, activityType="MentalMath", durationSeconds=90, score=70, moodBefore="Tired", moodAfter="Happy")
    body = client.get("/api/activities/summary/3").get_json()
    assert body["totalActivities"] == 2
    assert body["totalTimeSpentMinutes"] == 6
    assert body["activitiesThisWeek"] == 2
    assert body["currentStreak"] == 1
    assert {a["activityType"] for a in body["activityBreakdown"]} == {"BreathingExercise", "MentalMath"}
    assert body["moodTrends"]["moodImprovementRate"] == 3.0
    assert len(client.get("/api/activities/sessions/user/3").get_json()) == 2


def test_therapist_views(client):
    empty = client.get("/api/activities/therapist/analytics").get_json()
    assert empty["totalPatients"] == 0
    assert empty["activityDistribution"] == []

    write_json(config.ACTIVITY_SESSIONS_PATH, [
        {"userId": 1, "username": "A", "activityType": "DailyJournal", "durationSeconds": 600,
         "completionPercentage": 50.0, "status": "Abandoned", "createdAt": "2025-11-01T09:00:00Z",
         "endTime": "2025-11-01T09:10:00Z"},
        {"userId": 2, "username": "B", "activityType": "DailyJournal", "durationSeconds": 300,
         "status": "Completed", "createdAt": "2025-11-02T09:00:00Z", "endTime": "2025-11-02T09:05:00Z",
         "moodBefore": "Sad", "moodAfter": "Calm"},
        {"userId": 2, "username": "B", "activityType": "StoryRecall", "durationSeconds": 120,
         "score": 8, "status": "Completed", "createdAt": "2025-11-03T09:00:00Z"},
    ])
    body = client.get("/api/activities/therapist/analytics").get_json()
    assert body["totalPatients"] == 2
    assert body["totalActivitySessions"] == 3
    assert body["totalTimeSpentMinutes"] == 17
    assert body["activityDistribution"][0]["activityName"] == "Daily Journal"
    assert body["patientSummaries"][0]["userId"] == 2
    assert body["moodImprovementByActivity"]["DailyJournal"] == 2.0

    stats = client.get("/api/activities/therapist/activity-stats").get_json()
    journal = stats[0]
    assert journal["activityType"] == "DailyJournal"
    assert journal["completionRate"] == 50
    assert journal["lastSession"] == "2025-11-02T09:05:00Z"

    progress = client.get("/api/activities/progress/2").get_json()
    assert [p["activityType"] for p in progress] == ["DailyJournal", "StoryRecall"]
    assert client.get("/api/activities/progress/99").get_json() == []


def test_weekly_minutes(client):
    save(client, durationSeconds=150)
    weekly = client.get("/api/activities/weekly/3").get_json()
    assert len(weekly) == 7
    assert weekly[-1]["activitiesCompleted"] == 1
    assert weekly[-1]["minutesSpent"] == 2


def test_activity_ai_analysis(client, llm):
    body = client.get("/api/activities/ai-analysis/3").get_json()
    assert body["success"] is False
    assert body["message"] == "No activity sessions found for this user"
    assert body["analysis"]["source"] == "Default (AI unavailable)"

    save(client)
    save(client, activityType="MentalMath")
    llm.reply({"overallWellnessAssessment": "Calmer each week.", "wellnessScore": 82, "engagementLevel": "High"})
    body = client.get("/api/activities/ai-analysis/3?activityType=breathingexercise").get_json()
    assert body["success"] is True
    assert body["totalSessions"] == 1
    assert body["analysis"]["wellnessScore"] == 82
    assert body["analysis"]["moodAnalysis"] == "Mood tracking shows consistent participation."
    assert "--- Breathing Exercise (1 sessions) ---" in llm.calls[0]["messages"][1]["content"]


def test_curate_sounds_keeps_known_sounds(client, llm):
    llm.reply({
        "mixName": "Quiet Harbor",
        "recommendedSounds": ["Rain", "Whale Song", "Singing Bowls"],
        "volumeSettings": {"Rain": 65, "Whale Song": 80, "Singing Bowls": 45, "Brown Noise": 30},
        "explanation": "Gentle layers for winding down.",
        "wellnessTip": "Breathe slowly.",
        "recommendedDuration": 30,
        "mixCategory": "relaxation",
        "isNewCombination": True,
    })
    body = client.post("/api/activities/ai-curate-sounds", json={
        "userMood": "a bit anxious", "availableSounds": SOUNDS, "previousSounds": ["Rain"],
    }).get_json()
    assert body["success"] is True
    assert body["recommendedSounds"] == ["Rain", "Singing Bowls"]
    assert body["volumeSettings"] == {"Rain": 65, "Singing Bowls": 45}
    assert body["recommendedDuration"] == 30
    assert body["isNewCombination"] is True
    assert body["source"] == "Phi-4 AI"

    call = llm.calls[0]
    assert call["model"] == config.LLM_REASONING_MODEL
    assert call["response_format"]["type"] == "json_schema"
    assert "recently used these sounds: Rain" in call["messages"][1]["content"]


def test_curate_sounds_falls_back_to_preset_mix(client, llm):
    llm.reply({"mixName": "Odd", "recommendedSounds": ["Whale Song"], "volumeSettings": {}})
    body = client.post("/api/activities/ai-curate-sounds", json={
        "userMood": "can't sleep", "availableSounds": SOUNDS,
    }).get_json()
    assert body["success"] is True
    assert body["explanation"] == "A carefully curated combination to help you feel better."
    presets = {name: list(volumes) for volumes, name in FALLBACK_MIXES["sleep"]}
    assert body["recommendedSounds"] == presets[body["mixName"]]


def test_curate_sounds_timeout(client, llm):
    llm.error = concurrent.futures.TimeoutError()
    body = client.post("/api/activities/ai-curate-sounds", json={
        "userMood": "stressed", "availableSounds": SOUNDS,
    }).get_json()
    assert body == {"success": False, "error": "AI request timed out. Please try again."}
