from datetime import date, datetime

import pytest

from neuropath.services import reports
from conftest import game_record


def test_week_of_year_starts_first_week_on_jan_first():
    # 2025-01-01 is a Wednesday, so the second week starts on Monday the 6th.
    assert reports._week_of_year(date(2025, 1, 1)) == 1
    assert reports._week_of_year(date(2025, 1, 5)) == 1
    assert reports._week_of_year(date(2025, 1, 6)) == 2
    assert reports._week_of_year(date(2025, 11, 3)) == 45


@pytest.mark.parametrize("seconds,expected", [
    (3725, "1h 2min"),
    (125, "2min 5s"),
    (42, "42s"),
    (0, "0s"),
])
def test_format_duration(seconds, expected):
    assert reports.format_duration(seconds) == expected


def test_therapist_recommendations():
    recs = reports.therapist_recommendations(12, 3)
    assert len(recs) == 3
    assert recs[0].startswith("Patient needs more sessions")
    assert recs[1].startswith("Excellent progress!")

    recs = reports.therapist_recommendations(-6, 10)
    assert recs == [
        "Performance declining. Review with patient - may need additional support or reduced difficulty.",
        "Continue regular monitoring and encourage consistent practice.",
    ]


def test_unified_analysis_data_for_therapist_includes_clinical_context():
    sessions = [
        game_record(score=80, created="2025-11-01T10:00:00Z"),
        game_record(game_type="ReactionTrainer", score=120, created="2025-11-03T10:00:00Z",
                    averageReactionTimeMs=420.0, difficulty=2),
    ]
    text = reports.build_unified_analysis_data("Sam", sessions, is_therapist=True)
    assert "TARGET AUDIENCE: THERAPIST" in text
    assert "Total Sessions: 2" in text
    assert "Game Focus: Reaction Trainer" in text
    assert "--- REACTION TRAINER SPECIFICS ---" in text
    assert "Average Reaction Time: 420ms" in text
    # both sessions fall inside the first and last three
    assert "Score Trend: +0 points" in text
    assert "Session Frequency: 2 sessions over 2 days" in text
    assert "Difficulty Progression: Started at 1, now at 2" in text
    assert "--- MULTI-GAME BREAKDOWN ---" in text


def test_unified_analysis_data_for_child_skips_clinical_context():
    sessions = [game_record(score=80, totalMoves=18, timeTakenSeconds=40)]
    text = reports.build_unified_analysis_data("Sam", sessions, is_therapist=False, game_type="MemoryMatch")
    assert "USER/CHILD" in text
    assert "Average Moves: 18.0" in text
    assert "CLINICAL CONTEXT" not in text


def test_activity_analysis_data_reports_mood_and_frequency():
    sessions = [
        {"activityType": "BreathingExercise", "durationSeconds": 300, "moodBefore": "Stressed",
         "moodAfter": "Calm", "createdAt": "2025-11-01T09:00:00Z"},
        {"activityType": "BreathingExercise", "durationSeconds": 240, "moodBefore": "Sad",
         "moodAfter": "Happy", "createdAt": "2025-11-03T09:00:00Z"},
    ]
    text = reports.build_activity_analysis_data("Sam", sessions)
    assert "Date Range: Nov 1, 2025 to Nov 3, 2025" in text
    assert "--- Breathing Exercise (2 sessions) ---" in text
    assert "Total Time: 9 minutes" in text
    assert "Mood Improvement: +3.0" in text
    assert "Sessions per Week: 2.0" in text


def test_user_analysis_groups_weeks_days_and_difficulty():
    sessions = [
        game_record(score=50, accuracy=20.0, created="2025-11-03T10:00:00Z"),
        game_record(score=70, accuracy=40.0, created="2025-11-04T10:00:00Z"),
        game_record(score=110, accuracy=90.0, difficulty=2, created="2025-11-10T10:00:00Z"),
    ]
    result = reports.user_analysis(1, sessions, now=datetime(2025, 11, 10, 12, 0, 0))

    assert result["hasData"] is True
    assert result["username"] == "Sam Lee"
    assert result["summary"]["overallImprovement"] == pytest.approx(60.0)
    assert result["summary"]["overallTrend"] == "Improving"
    assert [w["weekLabel"] for w in result["weeklyPerformance"]] == ["W45", "W46"]
    assert [w["sessionsPlayed"] for w in result["weeklyPerformance"]] == [2, 1]
    assert [d["day"] for d in result["dailyPattern"]] == ["Monday", "Tuesday"]

    easy, medium = result["difficultyProgression"]
    assert easy["difficultyName"] == "Easy"
    assert easy["successRate"] == pytest.approx(60.0)
    assert medium["successRate"] == 100.0

    assert result["strengths"] == []
    assert result["areasForImprovement"] == []
    assert result["recentSessions"][0]["score"] == 110
    assert len(result["recommendations"]) == 3

    ai = result["aiAnalysis"]
    assert ai["cognitiveProfile"] == "Developing"
    assert ai["riskLevel"] == "Low"
    assert ai["motivationIndex"] == "Positive"
    assert ai["riskAssessment"].startswith("✅ LOW RISK")
    assert 0 < ai["engagementScore"] <= 100
    assert ai["generatedAt"] == "2025-11-10T12:00:00.000Z"


def test_risk_levels():
    assert reports.risk_level(25, 0) == "High"
    assert reports.risk_level(80, -11) == "High"
    assert reports.risk_level(45, 0) == "Moderate"
    assert reports.risk_level(80, 2) == "Low"


def test_progress_recommendations():
    summary = {
        "currentStreak": 4,
        "totalGamesPlayed": 12,
        "gameTypeBreakdown": [
            {"gameType": "MemoryMatch", "gamesPlayed": 10},
            {"gameType": "SortingTask", "gamesPlayed": 2},
        ],
    }
    recs = reports.progress_recommendations(summary)
    assert [r["type"] for r in recs] == ["streak", "try", "goal"]
    assert "Sorting Task" in recs[1]["message"]
    assert recs[2]["message"] == "Aim for 17 games this week to keep improving!"


def test_time_insights_and_achievements():
    summary = {
        "totalGamesPlayed": 2,
        "totalTimePlayed": 130,
        "currentStreak": 3,
        "averageAccuracy": 92.0,
        "recentSessions": [
            game_record(created="2025-11-05T08:00:00Z"),
            game_record(created="2025-11-04T09:30:00Z"),
        ],
        "weeklyActivity": [
            {"day": "Tue", "gamesPlayed": 1},
            {"day": "Wed", "gamesPlayed": 1},
        ],
    }
    best, day, duration, total = reports.time_insights(summary)
    assert best["value"] == "Morning (6AM-12PM)"
    assert best["detail"] == "You've played 2 game(s) during this time."
    assert day["value"] == "Tue"
    assert duration["value"] == "1.1 Minutes"
    assert total["value"] == "2min 10s"

    badges = {a["iconClass"]: a for a in reports.achievements(summary)}
    assert badges["fire"]["name"] == "3-Day Streak"
    assert badges["fire"]["unlocked"] is True
    assert badges["lightning"]["unlocked"] is False
    assert badges["bullseye"]["unlocked"] is True


def test_time_insights_without_games():
    summary = {"totalGamesPlayed": 0, "totalTimePlayed": 0, "recentSessions": [], "weeklyActivity": []}
    best, day, duration, total = reports.time_insights(summary)
    assert best["value"] == "Play more to discover!"
    assert day["value"] == "Not enough data"
    assert duration["value"] == "0 Seconds"
    assert total["value"] == "0s"
