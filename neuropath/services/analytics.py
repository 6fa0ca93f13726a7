"""Aggregations over in-memory session records.

Everything here is a pure function over lists of record dicts, so callers can
pass ``today`` explicitly when they need a fixed reference date.
"""
import math
from collections import Counter, OrderedDict
from datetime import datetime, timedelta

from neuropath.utils.helpers import (
    _created, _day_abbrev, _last_n_days, _mean, _parse_dt, _to_float, _utcnow,
)

GAME_NAMES = {
    "MemoryMatch": "Memory Match",
    "ReactionTrainer": "Reaction Trainer",
    "SortingTask": "Sorting Task",
    "PatternCopy": "Pattern Copy",
    "TrailMaking": "Trail Making",
    "DualTask": "Dual Task Training",
    "StroopTest": "Stroop Test",
}

GAME_STYLES = {
    "MemoryMatch": ("bi-memory", "#6366f1"),
    "ReactionTrainer": ("bi-lightning-fill", "#f59e0b"),
    "SortingTask": ("bi-sort-down", "#10b981"),
    "TrailMaking": ("bi-bezier2", "#0ea5e9"),
    "DualTask": ("bi-diagram-3", "#ec4899"),
    "StroopTest": ("bi-palette", "#a855f7"),
}
DEFAULT_GAME_STYLE = ("bi-controller", "#6b7280")

ACTIVITY_NAMES = {
    "DailyJournal": "Daily Journal",
    "WordAssociation": "Word Association",
    "BreathingExercise": "Breathing Exercise",
    "StoryRecall": "Story Recall",
    "MentalMath": "Mental Math",
    "FocusTracker": "Focus Tracker",
    "WordPuzzles": "Word Puzzles",
    "NumberSequence": "Number Sequence",
}

ACTIVITY_STYLES = {
    "DailyJournal": ("bi-journal-text", "#8b5cf6"),
    "WordAssociation": ("bi-link-45deg", "#06b6d4"),
    "BreathingExercise": ("bi-wind", "#10b981"),
    "StoryRecall": ("bi-book", "#f59e0b"),
    "MentalMath": ("bi-calculator", "#ef4444"),
    "FocusTracker": ("bi-bullseye", "#3b82f6"),
    "WordPuzzles": ("bi-puzzle", "#ec4899"),
    "NumberSequence": ("bi-123", "#6366f1"),
}
DEFAULT_ACTIVITY_STYLE = ("bi-activity", "#6b7280")

DIFFICULTY_NAMES = {1: "Easy", 2: "Medium", 3: "Hard"}

MOOD_SCALE = {
    "Stressed": 1,
    "Tired": 2, "Sad": 2, "Anxious": 2,
    "Neutral": 3, "Thoughtful": 3,
    "Calm": 4, "Hopeful": 4, "Grateful": 4,
    "Happy": 5, "Excited": 5, "Peaceful": 5,
}

TIME_OF_DAY = (
    ("Morning (6AM-12PM)", lambda h: 6 <= h < 12),
    ("Afternoon (12PM-6PM)", lambda h: 12 <= h < 18),
    ("Evening (6PM-10PM)", lambda h: 18 <= h < 22),
    ("Night (10PM-6AM)", lambda h: h >= 22 or h < 6),
)


def game_display_name(game_type):
    return GAME_NAMES.get(game_type, game_type)

def game_icon(game_type):
    return GAME_STYLES.get(game_type, DEFAULT_GAME_STYLE)[0]

def game_color(game_type):
    return GAME_STYLES.get(game_type, DEFAULT_GAME_STYLE)[1]

def activity_display_name(activity_type):
    return ACTIVITY_NAMES.get(activity_type, activity_type)

def activity_icon(activity_type):
    return ACTIVITY_STYLES.get(activity_type, DEFAULT_ACTIVITY_STYLE)[0]

def activity_color(activity_type):
    return ACTIVITY_STYLES.get(activity_type, DEFAULT_ACTIVITY_STYLE)[1]

def difficulty_name(difficulty):
    return DIFFICULTY_NAMES.get(difficulty, "Unknown")


def num(record, key, default=0.0):
    value = _to_float(record.get(key))
    return default if value is None else value

def avg(records, key, default=0.0):
    return _mean((num(r, key) for r in records), default)

def avg_present(records, key, default=0.0):
    """Average of ``key`` over the records that actually carry it."""
    values = [_to_float(r.get(key)) for r in records]
    return _mean((v for v in values if v is not None), default)

def group_by(records, key):
    groups = OrderedDict()
    for r in records:
        groups.setdefault(r.get(key), []).append(r)
    return groups

def newest_first(records):
    return sorted(records, key=_created, reverse=True)

def oldest_first(records):
    return sorted(records, key=_created)


# Streaks and trends

def calculate_streaks(dates, today=None):
    """Return ``(current, longest)`` runs of consecutive calendar days.

    The current streak is alive when there is a session today or yesterday.
    """
    today = today or _utcnow().date()
    days = sorted(set(dates), reverse=True)
    if not days:
        return 0, 0
    present = set(days)

    current = 0
    if today in present or today - timedelta(days=1) in present:
        check = today if today in present else today - timedelta(days=1)
        while check in present:
            current += 1
            check -= timedelta(days=1)

    longest = run = 1
    for prev, cur in zip(days, days[1:]):
        if (prev - cur).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    longest = max(longest, run)
    return current, longest

def session_dates(records):
    return [_created(r).date() for r in records if r.get("createdAt")]

def skill_progress(sessions):
    if not sessions:
        return 0.0
    max_difficulty = max(num(s, "difficulty") for s in sessions)
    difficulty_part = max_difficulty / 3.0 * 40
    accuracy_part = avg(sessions, "accuracy") * 0.4
    consistency_part = min(len(sessions), 20) / 20.0 * 20
    return min(100.0, difficulty_part + accuracy_part + consistency_part)

def progress_trend(sessions_newest_first):
    # Compares the three latest scores to the (up to) three before them.
    if len(sessions_newest_first) < 4:
        return "Stable"
    recent = avg(sessions_newest_first[:3], "score")
    previous = avg(sessions_newest_first[3:6], "score")
    if recent > previous * 1.1:
        return "Improving"
    if recent < previous * 0.9:
        return "Needs Attention"
    return "Stable"

def score_improvement(sessions_chronological):
    if not sessions_chronological:
        return 0.0
    return avg(sessions_chronological[-3:], "score") - avg(sessions_chronological[:3], "score")

def overall_improvement(sessions_chronological):
    if not sessions_chronological:
        return 0.0
    size = len(sessions_chronological) // 4 + 1
    return avg(sessions_chronological[-size:], "score") - avg(sessions_chronological[:size], "score")

def trend_label(improvement):
    if improvement > 5:
        return "Improving"
    if improvement < -5:
        return "Declining"
    return "Stable"

def score_variance(values):
    # Population standard deviation, reported as "variance" in clinical summaries.
    values = list(values)
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


# Mood

def mood_improvement(sessions):
    deltas = []
    for s in sessions:
        before = MOOD_SCALE.get(s.get("moodBefore") or "")
        after = MOOD_SCALE.get(s.get("moodAfter") or "")
        if before is not None and after is not None:
            deltas.append(after - before)
    return _mean(deltas, 0.0)

def _most_common(values):
    if not values:
        return ""
    return Counter(values).most_common(1)[0][0]

def mood_trends(sessions_newest_first):
    with_mood = [s for s in sessions_newest_first if s.get("moodBefore") or s.get("moodAfter")]
    if not with_mood:
        return None
    return {
        "mostCommonMoodBefore": _most_common([s["moodBefore"] for s in with_mood if s.get("moodBefore")]),
        "mostCommonMoodAfter": _most_common([s["moodAfter"] for s in with_mood if s.get("moodAfter")]),
        "moodImprovementRate": mood_improvement(with_mood),
        "recentMoods": [
            {
                "date": s.get("createdAt"),
                "moodBefore": s.get("moodBefore") or "",
                "moodAfter": s.get("moodAfter") or "",
            }
            for s in with_mood[:10]
        ],
    }

def mood_improvement_by_activity(sessions):
    return {k: mood_improvement(v) for k, v in group_by(sessions, "activityType").items()}


# Activity breakdowns

def _latest(records, key):
    stamps = [r.get(key) for r in records if r.get(key)]
    return max(stamps, key=lambda v: _parse_dt(v) or datetime.min) if stamps else None

def activity_breakdown(sessions, by_status=False):
    """Per-activity-type stats.

    ``by_status`` switches completion rate to the share of sessions with
    status ``Completed`` and reports the latest ``endTime`` instead of the
    latest ``createdAt``.
    """
    out = []
    for activity_type, group in group_by(sessions, "activityType").items():
        if by_status:
            completed = sum(1 for s in group if s.get("status") == "Completed")
            completion = int(completed * 100.0 / len(group))
            last = _latest(group, "endTime")
        else:
            completion = int(_mean(num(s, "completionPercentage", 100.0) for s in group))
            last = _latest(group, "createdAt")
        out.append({
            "activityType": activity_type,
            "activityName": activity_display_name(activity_type),
            "icon": activity_icon(activity_type),
            "color": activity_color(activity_type),
            "totalSessions": len(group),
            "totalTimeMinutes": int(sum(num(s, "durationSeconds") for s in group)) // 60,
            "averageScore": avg_present(group, "score"),
            "averageAccuracy": avg_present(group, "accuracy"),
            "completionRate": completion,
            "lastSession": last,
        })
    out.sort(key=lambda a: a["totalSessions"], reverse=True)
    return out


# Weekly buckets

def daily_buckets(records, today=None, days=7):
    """Map each of the last ``days`` calendar days (oldest first) to its records."""
    today = today or _utcnow().date()
    buckets = OrderedDict((d, []) for d in _last_n_days(today, days))
    for r in records:
        if not r.get("createdAt"):
            continue
        d = _created(r).date()
        if d in buckets:
            buckets[d].append(r)
    return buckets

def weekly_game_activity(sessions, today=None):
    return [
        {
            "day": _day_abbrev(d),
            "date": d.isoformat(),
            "gamesPlayed": len(group),
            "averageScore": avg(group, "score"),
        }
        for d, group in daily_buckets(sessions, today).items()
    ]

def weekly_activity_minutes(sessions, today=None):
    return [
        {
            "day": _day_abbrev(d),
            "date": d.isoformat(),
            "activitiesCompleted": len(group),
            "minutesSpent": int(sum(num(s, "durationSeconds") for s in group)) // 60,
        }
        for d, group in daily_buckets(sessions, today).items()
    ]

def with_bar_heights(activity):
    if not activity:
        return [{"day": d, "gamesPlayed": 0, "heightPercent": 10.0} for d in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")]
    busiest = max(a["gamesPlayed"] for a in activity) or 1
    return [
        {
            "day": a["day"],
            "gamesPlayed": a["gamesPlayed"],
            "heightPercent": max(10.0, a["gamesPlayed"] / busiest * 100),
        }
        for a in activity
    ]

def time_of_day_label(hour):
    for label, matches in TIME_OF_DAY:
        if matches(hour):
            return label
    return TIME_OF_DAY[-1][0]
