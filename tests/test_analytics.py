from datetime import date, timedelta

import pytest

from neuropath.services import analytics
from conftest import game_record

TODAY = date(2025, 11, 5)


def days_ago(*offsets):
    return [TODAY - timedelta(days=n) for n in offsets]


def test_streak_counts_back_from_today():
    assert analytics.calculate_streaks(days_ago(0, 1, 2), TODAY) == (3, 3)


def test_streak_starting_yesterday_is_still_current():
    assert analytics.calculate_streaks(days_ago(1, 2), TODAY) == (2, 2)


def test_streak_broken_by_gap():
    current, longest = analytics.calculate_streaks(days_ago(0, 2, 3, 4, 5), TODAY)
    assert current == 1
    assert longest == 4


def test_stale_history_has_no_current_streak():
    assert analytics.calculate_streaks(days_ago(3, 4), TODAY) == (0, 2)


def test_streak_ignores_duplicate_days_and_empty_input():
    assert analytics.calculate_streaks(days_ago(0, 0, 1), TODAY) == (2, 2)
    assert analytics.calculate_streaks([], TODAY) == (0, 0)


def test_progress_trend_needs_four_sessions():
    sessions = [game_record(score=s) for s in (300, 10, 10)]
    assert analytics.progress_trend(sessions) == "Stable"


@pytest.mark.parametrize("recent,older,expected", [
    (120, 100, "Improving"),
    (80, 100, "Needs Attention"),
    (105, 100, "Stable"),
])
def test_progress_trend_compares_latest_three_with_previous(recent, older, expected):
    newest_first = [game_record(score=recent)] * 3 + [game_record(score=older)] * 3
    assert analytics.progress_trend(newest_first) == expected


def test_score_improvement_and_trend_label():
    chron = [game_record(score=s) for s in (10, 20, 30, 40, 50, 60)]
    assert analytics.score_improvement(chron) == pytest.approx(30.0)
    assert analytics.trend_label(30.0) == "Improving"
    assert analytics.trend_label(-6) == "Declining"
    assert analytics.trend_label(5) == "Stable"


def test_overall_improvement_uses_quarters():
    chron = [game_record(score=s) for s in (10, 20, 30, 40, 50, 60, 70, 80)]
    # n // 4 + 1 == 3 sessions at each end
    assert analytics.overall_improvement(chron) == pytest.approx(70 - 20)


def test_score_variance_is_population_std_dev():
    assert analytics.score_variance([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert analytics.score_variance([5]) == 0.0


def test_skill_progress_is_capped():
    sessions = [game_record(difficulty=3, accuracy=100.0)] * 20
    assert analytics.skill_progress(sessions) == 100.0
    assert analytics.skill_progress([game_record(difficulty=1, accuracy=50.0)]) == pytest.approx(40 / 3 + 20 + 1)


def test_mood_improvement_skips_unknown_moods():
    sessions = [
        {"moodBefore": "Stressed", "moodAfter": "Calm"},
        {"moodBefore": "Sad", "moodAfter": "Happy"},
        {"moodBefore": "Confused", "moodAfter": "Happy"},
    ]
    assert analytics.mood_improvement(sessions) == pytest.approx(3.0)
    assert analytics.mood_improvement([]) == 0.0


def test_mood_trends_none_without_moods():
    assert analytics.mood_trends([{"activityType": "MentalMath"}]) is None


def test_mood_trends_reports_most_common():
    sessions = [
        {"moodBefore": "Tired", "moodAfter": "Calm", "createdAt": "2025-11-05T09:00:00Z"},
        {"moodBefore": "Tired", "moodAfter": "Happy", "createdAt": "2025-11-04T09:00:00Z"},
        {"moodBefore": "Sad", "moodAfter": "Calm", "createdAt": "2025-11-03T09:00:00Z"},
    ]
    trends = analytics.mood_trends(sessions)
    assert trends["mostCommonMoodBefore"] == "Tired"
    assert trends["mostCommonMoodAfter"] == "Calm"
    assert len(trends["recentMoods"]) == 3


def test_weekly_game_activity_has_seven_days_ending_today():
    sessions = [
        game_record(score=100, created="2025-11-05T08:00:00Z"),
        game_record(score=50, created="2025-11-05T20:00:00Z"),
        game_record(score=70, created="2025-10-20T08:00:00Z"),
    ]
    weekly = analytics.weekly_game_activity(sessions, TODAY)
    assert len(weekly) == 7
    assert weekly[-1]["date"] == "2025-11-05"
    assert weekly[-1]["day"] == "Wed"
    assert weekly[-1]["gamesPlayed"] == 2
    assert weekly[-1]["averageScore"] == pytest.approx(75.0)
    assert sum(d["gamesPlayed"] for d in weekly) == 2


def test_bar_heights_have_a_floor():
    heights = analytics.with_bar_heights([
        {"day": "Mon", "gamesPlayed": 4},
        {"day": "Tue", "gamesPlayed": 0},
        {"day": "Wed", "gamesPlayed": 1},
    ])
    assert [h["heightPercent"] for h in heights] == [100.0, 10.0, 25.0]
    empty = analytics.with_bar_heights([])
    assert [d["day"] for d in empty] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert all(d["heightPercent"] == 10.0 for d in empty)


def test_activity_breakdown_averages_only_present_scores():
    sessions = [
        {"activityType": "MentalMath", "durationSeconds": 90, "score": 80, "completionPercentage": 100.0,
         "createdAt": "2025-11-01T09:00:00Z", "status": "Completed", "endTime": "2025-11-01T09:01:30Z"},
        {"activityType": "MentalMath", "durationSeconds": 60, "completionPercentage": 50.0,
         "createdAt": "2025-11-02T09:00:00Z", "status": "Abandoned", "endTime": "2025-11-02T09:01:00Z"},
        {"activityType": "DailyJournal", "durationSeconds": 30, "createdAt": "2025-11-03T09:00:00Z"},
    ]
    breakdown = analytics.activity_breakdown(sessions)
    math = breakdown[0]
    assert math["activityType"] == "MentalMath"
    assert math["activityName"] == "Mental Math"
    assert math["totalTimeMinutes"] == 2
    assert math["averageScore"] == 80
    assert math["completionRate"] == 75
    assert math["lastSession"] == "2025-11-02T09:00:00Z"
    assert breakdown[1]["icon"] == "bi-journal-text"

    by_status = analytics.activity_breakdown(sessions, by_status=True)
    assert by_status[0]["completionRate"] == 50
    assert by_status[0]["lastSession"] == "2025-11-02T09:01:00Z"


def test_time_of_day_buckets():
    assert analytics.time_of_day_label(7) == "Morning (6AM-12PM)"
    assert analytics.time_of_day_label(12) == "Afternoon (12PM-6PM)"
    assert analytics.time_of_day_label(21) == "Evening (6PM-10PM)"
    assert analytics.time_of_day_label(3) == "Night (10PM-6AM)"


def test_display_lookups_fall_back():
    assert analytics.game_display_name("ReactionTrainer") == "Reaction Trainer"
    assert analytics.game_display_name("NewGame") == "NewGame"
    assert analytics.game_icon("NewGame") == "bi-controller"
    assert analytics.difficulty_name(2) == "Medium"
    assert analytics.difficulty_name(7) == "Unknown"
