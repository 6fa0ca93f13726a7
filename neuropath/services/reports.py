"""Report shaping for the game and activity endpoints.

Two kinds of output live here: plain-text data summaries that are fed to the
local LLM, and the JSON payloads consumed by the dashboard pages (therapist
dashboard, per-patient analysis, progress and statistics pages).
"""
from datetime import date

from neuropath.services import analytics
from neuropath.services.analytics import avg, avg_present, num
from neuropath.utils.helpers import (
    DAY_NAMES, _created, _format_long_date, _iso, _mean, _signed, _to_float, _utcnow,
)


# LLM data summaries

def build_unified_analysis_data(username, sessions, is_therapist, game_type=None):
    """Text block describing a player's sessions (oldest first) for the LLM."""
    last = sessions[-1]
    improvement = analytics.score_improvement(sessions)
    audience = (
        "THERAPIST (clinical, professional analysis)" if is_therapist
        else "USER/CHILD (encouraging, fun, simple language)"
    )
    lines = [
        f"TARGET AUDIENCE: {audience}",
        "",
        f"=== PLAYER DATA: {username} ===",
        f"Total Sessions: {len(sessions)}",
        f"Game Focus: {analytics.game_display_name(game_type or last.get('gameType'))}",
        "",
        "--- PERFORMANCE METRICS ---",
        f"Last Session Score: {int(num(last, 'score'))}",
        f"Last Session Accuracy: {num(last, 'accuracy'):.1f}%",
        f"Average Score: {avg(sessions, 'score'):.0f}",
        f"Average Accuracy: {avg(sessions, 'accuracy'):.1f}%",
        f"Best Score: {int(max(num(s, 'score') for s in sessions))}",
        f"Worst Score: {int(min(num(s, 'score') for s in sessions))}",
        f"Current Difficulty: {int(num(last, 'difficulty'))}",
        f"Score Trend: {_signed(improvement)} points",
        "",
    ]
    lines.extend(_game_specific_lines(str(last.get("gameType") or "").lower(), sessions, last))

    if is_therapist:
        first = sessions[0]
        span_days = (_created(last) - _created(first)).total_seconds() / 86400
        variance = analytics.score_variance(num(s, "score") for s in sessions)
        lines += [
            "",
            "--- CLINICAL CONTEXT (FOR THERAPIST) ---",
            f"Session Frequency: {len(sessions)} sessions over {span_days:.0f} days",
            f"Difficulty Progression: Started at {int(num(first, 'difficulty'))}, now at {int(num(last, 'difficulty'))}",
            f"Consistency: Score variance = {variance:.1f}",
            f"Overall Trend: {analytics.trend_label(improvement).upper()}",
        ]
        groups = analytics.group_by(sessions, "gameType")
        if len(groups) > 1:
            lines += ["", "--- MULTI-GAME BREAKDOWN ---"]
            for game, group in groups.items():
                lines.append(
                    f"{analytics.game_display_name(game)}: {len(group)} sessions, "
                    f"Avg Score: {avg(group, 'score'):.0f}, Avg Accuracy: {avg(group, 'accuracy'):.1f}%"
                )
    return "\n".join(lines) + "\n"

def _game_specific_lines(game, sessions, last):
    if game == "memorymatch":
        return [
            "--- MEMORY MATCH SPECIFICS ---",
            f"Average Moves: {avg(sessions, 'totalMoves'):.1f}",
            f"Average Time: {avg(sessions, 'timeTakenSeconds'):.1f} seconds",
            f"Last Session Moves: {int(num(last, 'totalMoves'))}",
            f"Last Session Time: {int(num(last, 'timeTakenSeconds'))} seconds",
        ]
    if game == "reactiontrainer":
        lines = ["--- REACTION TRAINER SPECIFICS ---"]
        timed = [s for s in sessions if s.get("averageReactionTimeMs") is not None]
        if timed:
            lines.append(f"Average Reaction Time: {avg(timed, 'averageReactionTimeMs'):.0f}ms")
            lines.append(f"Best Reaction Time: {min(num(s, 'averageReactionTimeMs') for s in timed):.0f}ms")
        lines.append(f"Correct Responses: {int(num(last, 'correctMoves'))}")
        return lines
    if game == "sortingtask":
        lines = ["--- SORTING TASK SPECIFICS ---"]
        sorted_ = [s for s in sessions if s.get("itemsSorted") is not None]
        if sorted_:
            lines.append(f"Average Items Sorted: {avg(sorted_, 'itemsSorted'):.1f}")
        return lines
    if game == "patterncopy":
        lines = ["--- PATTERN COPY SPECIFICS ---"]
        patterns = [s for s in sessions if s.get("patternSize") is not None]
        if patterns:
            grid = _mean(num(s, "gridSize", 3.0) for s in patterns)
            lines += [
                f"Average Grid Size: {grid:.1f}x{grid:.1f}",
                f"Average Pattern Size: {avg(patterns, 'patternSize'):.1f} cells",
                f"Average Correct Patterns: {avg(patterns, 'correctPatterns'):.1f}/{avg(patterns, 'totalRounds'):.1f}",
                f"Average Time: {avg(patterns, 'timeTakenSeconds'):.1f} seconds",
            ]
        return lines
    return []

def build_user_data_summary(username, sessions):
    lines = [
        f"=== PATIENT: {username} ===",
        f"Total Sessions: {len(sessions)}",
        f"Date Range: {_format_long_date(_created(sessions[0]))} to {_format_long_date(_created(sessions[-1]))}",
        "",
    ]
    for game, group in analytics.group_by(sessions, "gameType").items():
        group = analytics.oldest_first(group)
        key = str(game or "").lower()
        lines += [
            f"--- {analytics.game_display_name(game or 'Unknown')} ({len(group)} sessions) ---",
            f"  Average Score: {avg(group, 'score'):.0f}",
            f"  Average Accuracy: {avg(group, 'accuracy'):.1f}%",
            f"  Best Score: {int(max(num(s, 'score') for s in group))}",
            f"  Worst Score: {int(min(num(s, 'score') for s in group))}",
            f"  Max Difficulty Reached: {int(max(num(s, 'difficulty') for s in group))}",
            f"  Score Improvement: {_signed(analytics.score_improvement(group))} points",
        ]
        if key == "memorymatch":
            lines.append(f"  Average Moves: {avg(group, 'totalMoves'):.1f}")
            lines.append(f"  Average Time: {avg(group, 'timeTakenSeconds'):.1f} seconds")
        elif key == "reactiontrainer":
            timed = [s for s in group if s.get("averageReactionTimeMs") is not None]
            if timed:
                lines.append(f"  Average Reaction Time: {avg(timed, 'averageReactionTimeMs'):.0f}ms")
        elif key == "sortingtask":
            lines.append(f"  Average Items Sorted: {avg_present(group, 'itemsSorted'):.1f}")

        if len(group) >= 3:
            recent = avg(group[-3:], "accuracy")
            older = avg(group[:max(1, len(group) - 3)], "accuracy")
            trend = "IMPROVING" if recent > older + 5 else "DECLINING" if recent < older - 5 else "STABLE"
            lines.append(f"  Recent Trend: {trend}")
        lines.append("")

    total_seconds = sum(num(s, "timeTakenSeconds") for s in sessions)
    lines += [
        "--- OVERALL PERFORMANCE ---",
        f"  Total Time Played: {total_seconds / 60:.1f} minutes",
        f"  Overall Accuracy: {avg(sessions, 'accuracy'):.1f}%",
        f"  Overall Average Score: {avg(sessions, 'score'):.0f}",
    ]
    return "\n".join(lines) + "\n"

def build_activity_analysis_data(username, sessions):
    first, last = _created(sessions[0]), _created(sessions[-1])
    lines = [
        f"=== PATIENT: {username} ===",
        f"Total Activity Sessions: {len(sessions)}",
        f"Date Range: {_format_long_date(first)} to {_format_long_date(last)}",
        "",
    ]
    for activity_type, group in analytics.group_by(sessions, "activityType").items():
        lines.append(f"--- {analytics.activity_display_name(activity_type)} ({len(group)} sessions) ---")
        lines.append(f"  Total Time: {int(sum(num(s, 'durationSeconds') for s in group)) // 60} minutes")
        if any(s.get("score") is not None for s in group):
            lines.append(f"  Average Score: {avg_present(group, 'score'):.0f}")
        if any(s.get("accuracy") is not None for s in group):
            lines.append(f"  Average Accuracy: {avg_present(group, 'accuracy'):.1f}%")
        lines.append(f"  Completion Rate: {_mean(num(s, 'completionPercentage', 100.0) for s in group):.0f}%")
        with_mood = [s for s in group if s.get("moodBefore") and s.get("moodAfter")]
        if with_mood:
            lines.append(f"  Mood Improvement: {_signed(analytics.mood_improvement(with_mood), 1)}")
        lines.append("")

    weeks = max(1.0, (last - first).total_seconds() / 86400 / 7)
    lines += [
        "--- WELLNESS METRICS ---",
        f"  Total Time Invested: {int(sum(num(s, 'durationSeconds') for s in sessions)) // 60} minutes",
        f"  Sessions per Week: {len(sessions) / weeks:.1f}",
    ]
    return "\n".join(lines) + "\n"


# Therapist dashboard

def therapist_dashboard(data, sessions, today=None):
    patients = data["patientSummaries"]
    time_by_user = {}
    for s in sessions:
        time_by_user[s.get("userId")] = time_by_user.get(s.get("userId"), 0) + num(s, "timeTakenSeconds")

    game_stats = []
    for dist in data["gameDistribution"]:
        group = [s for s in sessions if s.get("gameType") == dist["gameType"]]
        game_stats.append({
            "gameType": dist["gameType"],
            "gameName": analytics.game_display_name(dist["gameType"]),
            "totalSessions": dist["sessionCount"],
            "averageScore": avg(group, "score"),
            "averageAccuracy": avg(group, "accuracy"),
            "bestScore": int(max((num(s, "score") for s in group), default=0)),
            "averageMoves": avg(group, "totalMoves"),
            "averageReactionTime": avg_present(group, "averageReactionTimeMs"),
        })

    users = [
        {
            "userId": p["userId"],
            "username": p["username"] or f"User_{p['userId']}",
            "totalSessions": p["totalSessions"],
            "averageScore": p["averageScore"],
            "averageAccuracy": p["averageAccuracy"],
            "bestScore": p["bestScore"],
            "totalTimePlayed": time_by_user.get(p["userId"], 0),
            "lastPlayed": p["lastSessionDate"],
            "progressTrend": p["progressTrend"] or "Stable",
        }
        for p in patients
    ]
    users.sort(key=lambda u: u["averageScore"], reverse=True)

    weekly = [
        {"day": a["day"], "gamesPlayed": a["gamesPlayed"]}
        for a in analytics.weekly_game_activity(sessions, today)
    ]
    return {
        "totalUsers": data["totalPatients"],
        "totalSessions": len(sessions),
        "overallAccuracy": _mean(p["averageAccuracy"] for p in patients),
        "averageScore": data["averagePatientScore"],
        "gameTypeStats": game_stats,
        "userSummaries": users,
        "recentSessions": [_session_row(s) for s in analytics.newest_first(sessions)[:10]],
        "weeklyActivity": analytics.with_bar_heights(weekly),
    }

def _session_row(s):
    return {
        "userId": s.get("userId"),
        "username": s.get("username") or f"User_{s.get('userId')}",
        "gameType": s.get("gameType"),
        "score": int(num(s, "score")),
        "accuracy": num(s, "accuracy"),
        "difficulty": int(num(s, "difficulty")),
        "timeTaken": num(s, "timeTakenSeconds"),
        "playedAt": s.get("createdAt"),
    }


# Per-patient analysis

def _week_of_year(d):
    # Week 1 starts on Jan 1, later weeks start on Monday.
    jan1 = date(d.year, 1, 1)
    return (d.timetuple().tm_yday - 1 + jan1.weekday()) // 7 + 1

def game_breakdown(sessions):
    out = []
    for game, group in analytics.group_by(sessions, "gameType").items():
        group = analytics.oldest_first(group)
        improvement = analytics.score_improvement(group)
        out.append({
            "gameType": game,
            "gameName": analytics.game_display_name(game),
            "totalSessions": len(group),
            "averageScore": avg(group, "score"),
            "averageAccuracy": avg(group, "accuracy"),
            "bestScore": int(max(num(s, "score") for s in group)),
            "worstScore": int(min(num(s, "score") for s in group)),
            "totalTimePlayed": int(sum(num(s, "timeTakenSeconds") for s in group)),
            "averageTimeTaken": avg(group, "timeTakenSeconds"),
            "averageMoves": avg(group, "totalMoves"),
            "averageReactionTime": avg_present(group, "averageReactionTimeMs"),
            "maxDifficulty": int(max(num(s, "difficulty") for s in group)),
            "improvement": improvement,
            "trend": analytics.trend_label(improvement),
            "scoreHistory": [
                {"date": s.get("createdAt"), "score": int(num(s, "score")), "accuracy": num(s, "accuracy")}
                for s in group
            ],
        })
    return out

def user_analysis(user_id, sessions, now=None):
    """Detailed per-patient breakdown; ``sessions`` must be oldest first."""
    now = now or _utcnow()
    username = sessions[0].get("username") or f"User_{user_id}"
    breakdown = game_breakdown(sessions)
    improvement = analytics.overall_improvement(sessions)

    weekly = {}
    for s in sessions:
        created = _created(s)
        weekly.setdefault((created.year, _week_of_year(created.date())), []).append(s)
    weekly_performance = [
        {
            "weekLabel": f"W{week}",
            "averageScore": avg(group, "score"),
            "averageAccuracy": avg(group, "accuracy"),
            "sessionsPlayed": len(group),
        }
        for (_, week), group in sorted(weekly.items())
    ]

    by_weekday = {}
    for s in sessions:
        by_weekday.setdefault(_created(s).weekday(), []).append(s)
    daily_pattern = sorted(
        (
            {
                "day": DAY_NAMES[wd],
                "dayIndex": (wd + 1) % 7,
                "sessionsPlayed": len(group),
                "averageScore": avg(group, "score"),
            }
            for wd, group in by_weekday.items()
        ),
        key=lambda d: d["dayIndex"],
    )

    difficulty_progression = []
    for level, group in sorted(analytics.group_by(sessions, "difficulty").items(), key=lambda kv: _to_float(kv[0], 0.0)):
        accuracy = avg(group, "accuracy")
        difficulty_progression.append({
            "difficulty": level,
            "difficultyName": analytics.DIFFICULTY_NAMES.get(level, f"Level {level}"),
            "sessionsPlayed": len(group),
            "averageScore": avg(group, "score"),
            "averageAccuracy": accuracy,
            "successRate": 100.0 if accuracy >= 50 else accuracy * 2,
        })

    strengths, improvements = [], []
    for game in breakdown:
        if game["averageAccuracy"] >= 70:
            strengths.append({
                "area": game["gameName"],
                "score": game["averageAccuracy"],
                "description": f"Strong performance in {game['gameName']}",
            })
        elif game["averageAccuracy"] < 50:
            improvements.append({
                "area": game["gameName"],
                "score": game["averageAccuracy"],
                "suggestion": f"Practice more {game['gameName']} sessions",
            })

    recent = [
        {
            "gameType": s.get("gameType"),
            "gameName": analytics.game_display_name(s.get("gameType")),
            "score": int(num(s, "score")),
            "accuracy": num(s, "accuracy"),
            "difficulty": int(num(s, "difficulty")),
            "timeTaken": int(num(s, "timeTakenSeconds")),
            "playedAt": s.get("createdAt"),
        }
        for s in list(reversed(sessions))[:10]
    ]

    return {
        "hasData": True,
        "userId": user_id,
        "username": username,
        "summary": {
            "totalSessions": len(sessions),
            "totalGamesTypes": len(breakdown),
            "totalTimePlayed": int(sum(num(s, "timeTakenSeconds") for s in sessions)),
            "averageScore": avg(sessions, "score"),
            "averageAccuracy": avg(sessions, "accuracy"),
            "bestScore": int(max(num(s, "score") for s in sessions)),
            "firstSession": sessions[0].get("createdAt"),
            "lastSession": sessions[-1].get("createdAt"),
            "overallImprovement": improvement,
            "overallTrend": analytics.trend_label(improvement),
        },
        "gameBreakdown": breakdown,
        "weeklyPerformance": weekly_performance,
        "dailyPattern": daily_pattern,
        "difficultyProgression": difficulty_progression,
        "strengths": strengths,
        "areasForImprovement": improvements,
        "recentSessions": recent,
        "recommendations": therapist_recommendations(improvement, len(sessions)),
        "aiAnalysis": rule_based_analysis(username, improvement, sessions, strengths, improvements, now),
    }

def therapist_recommendations(improvement, total_sessions):
    recs = []
    if total_sessions < 5:
        recs.append("Patient needs more sessions to establish a baseline. Recommend at least 5 sessions per game type.")
    if improvement > 10:
        recs.append("Excellent progress! Patient shows significant improvement. Consider increasing difficulty levels.")
    elif improvement < -5:
        recs.append("Performance declining. Review with patient - may need additional support or reduced difficulty.")
    recs.append("Continue regular monitoring and encourage consistent practice.")
    return recs


# Rule-based clinical narrative

def cognitive_profile(accuracy):
    if accuracy >= 70:
        return "High Performer"
    if accuracy >= 50:
        return "Developing"
    if accuracy >= 30:
        return "Needs Support"
    return "Requires Intervention"

def risk_level(accuracy, improvement):
    if accuracy < 30 or improvement < -10:
        return "High"
    if accuracy < 50 or improvement < -5:
        return "Moderate"
    return "Low"

def sessions_per_week(sessions, now):
    if not sessions:
        return 0.0
    days = (now - min(_created(s) for s in sessions)).total_seconds() / 86400
    return len(sessions) / (days / 7) if days > 0 else float(len(sessions))

def rule_based_analysis(username, improvement, sessions, strengths, improvements, now=None):
    now = now or _utcnow()
    accuracy = avg(sessions, "accuracy")
    score = avg(sessions, "score")
    per_week = sessions_per_week(sessions, now)
    level = risk_level(accuracy, improvement)
    return {
        "cognitiveProfile": cognitive_profile(accuracy),
        "performanceSummary": performance_summary(username, accuracy, score, improvement, len(sessions)),
        "cognitiveAssessment": cognitive_assessment(accuracy, len(strengths), len(improvements)),
        "progressAnalysis": progress_analysis(improvement, per_week, len(sessions)),
        "therapyRecommendations": therapy_recommendations(accuracy, improvement, per_week),
        "nextSteps": next_steps(accuracy, improvement, len(sessions)),
        "riskLevel": level,
        "riskAssessment": risk_assessment(level, accuracy, improvement),
        "engagementScore": min(100, int(per_week * 20 + accuracy / 2)),
        "motivationIndex": "Positive" if improvement > 0 else "Declining" if improvement < -5 else "Stable",
        "generatedAt": _iso(now),
    }

def performance_summary(username, accuracy, score, improvement, total):
    if improvement > 5:
        trend = "showing positive improvement"
    elif improvement < -5:
        trend = "experiencing some challenges"
    else:
        trend = "maintaining steady performance"
    if accuracy >= 70:
        level = "excellent"
    elif accuracy >= 50:
        level = "good"
    elif accuracy >= 30:
        level = "developing"
    else:
        level = "needs significant support"
    direction = "improvement" if improvement >= 0 else "decline"
    return (
        f"{username} has completed {total} cognitive training sessions with an average accuracy of {accuracy:.1f}% "
        f"({level}). The patient is {trend} with an average score of {score:.0f} points. "
        f"Overall performance trend indicates a {abs(improvement):.1f} point {direction} compared to initial sessions."
    )

def cognitive_assessment(accuracy, strength_count, improvement_count):
    if accuracy >= 70:
        text = ("Patient demonstrates strong cognitive processing abilities across multiple domains. "
                "Neural pathway engagement appears healthy with consistent performance. ")
    elif accuracy >= 50:
        text = ("Patient shows developing cognitive skills with room for improvement. "
                "Some areas of strength identified alongside areas requiring focused attention. ")
    else:
        text = ("Patient requires additional cognitive support and intervention strategies. "
                "Recommend comprehensive assessment to identify specific learning barriers. ")
    if strength_count > 0:
        text += f"Identified {strength_count} area(s) of cognitive strength. "
    if improvement_count > 0:
        text += f"Flagged {improvement_count} area(s) requiring targeted intervention. "
    return text

def progress_analysis(improvement, per_week, total):
    if total < 5:
        text = ("Insufficient data for comprehensive trend analysis. "
                "Recommend continued sessions to establish baseline metrics. ")
    elif improvement > 10:
        text = ("Outstanding progress trajectory! Patient shows significant cognitive gains. "
                "Consider advancing to more challenging difficulty levels. ")
    elif improvement > 5:
        text = ("Positive progress detected. Patient is responding well to cognitive training. "
                "Current approach is effective - maintain consistency. ")
    elif improvement > -5:
        text = ("Performance remains stable. Consider introducing variety or adjusting challenge level "
                "to stimulate further progress. ")
    else:
        text = ("Declining performance trend identified. Recommend reviewing current approach "
                "and potentially reducing difficulty to rebuild confidence. ")

    if per_week >= 5:
        text += "Excellent engagement frequency supporting consistent cognitive development. "
    elif per_week >= 3:
        text += "Good session frequency. Consider increasing to 5+ sessions per week for optimal results. "
    else:
        text += "Low session frequency may limit progress. Encourage more regular practice. "
    return text

def therapy_recommendations(accuracy, improvement, per_week):
    if accuracy < 40:
        recs = [
            "🎯 Consider reducing game difficulty to build foundational skills and confidence.",
            "📝 Implement structured practice sessions focusing on one game type at a time.",
        ]
    elif accuracy < 60:
        recs = [
            "📈 Patient is ready for moderate challenges. Gradually increase complexity.",
            "🔄 Introduce varied exercises to strengthen neural pathway diversity.",
        ]
    else:
        recs = [
            "⭐ Patient excelling! Challenge with advanced difficulty levels and timed exercises.",
            "🎓 Consider introducing new game types to expand cognitive skill set.",
        ]

    if improvement < -5:
        recs.append("⚠️ Address declining performance through one-on-one review session.")
        recs.append("💬 Discuss any external factors that may be affecting cognitive performance.")
    elif improvement > 10:
        recs.append("🏆 Celebrate achievements! Positive reinforcement will maintain motivation.")

    if per_week < 3:
        recs.append("📅 Establish routine schedule - aim for at least 3-4 sessions per week.")
        recs.append("🏠 Consider home practice assignments between therapy sessions.")

    recs.append("🧠 Memory exercises strengthen hippocampal function - maintain regular Memory Match practice.")
    recs.append("⚡ Reaction training improves processing speed - balance with strategic games.")
    return recs

def next_steps(accuracy, improvement, total):
    return [
        f"1. Review current session with patient - discuss {'achievements' if improvement >= 0 else 'challenges'}",
        "2. Adjust difficulty settings to appropriate level for patient's current abilities" if accuracy < 50
        else "2. Consider incrementing difficulty level to maintain engagement",
        "3. Continue baseline data collection - minimum 10 sessions recommended" if total < 10
        else "3. Generate comprehensive progress report for care team review",
        "4. Schedule follow-up assessment in 2 weeks to measure continued progress",
        "5. Document observations and update treatment plan as needed",
    ]

def risk_assessment(level, accuracy, improvement):
    if level == "High":
        return (f"⚠️ HIGH RISK: Patient accuracy ({accuracy:.1f}%) and trend ({improvement:.1f}) indicate significant "
                "cognitive challenges. Recommend immediate care team review and potential referral for "
                "comprehensive neuropsychological evaluation. Consider environmental and emotional factors.")
    if level == "Moderate":
        return ("⚡ MODERATE RISK: Performance metrics suggest patient may benefit from adjusted approach. "
                f"Current accuracy of {accuracy:.1f}% with {improvement:.1f} point trend change warrants "
                "close monitoring. Review in next 1-2 weeks recommended.")
    return (f"✅ LOW RISK: Patient performing within expected parameters. Accuracy of {accuracy:.1f}% "
            "and positive/stable trend indicate appropriate engagement with cognitive rehabilitation program. "
            "Continue current approach with regular monitoring.")


# Progress and statistics pages

def progress_page(summary):
    breakdown = summary["gameTypeBreakdown"]
    return {
        "totalGamesPlayed": summary["totalGamesPlayed"],
        "currentStreak": summary["currentStreak"],
        "averageAccuracy": summary["averageAccuracy"],
        "currentLevel": max((g["currentLevel"] for g in breakdown), default=1),
        "bestScore": summary["bestScore"],
        "averageScore": summary["averageScore"],
        "totalTimePlayed": summary["totalTimePlayed"],
        "longestStreak": summary["longestStreak"],
        "gameProgress": [
            {
                "gameType": g["gameType"],
                "gameName": analytics.game_display_name(g["gameType"]),
                "icon": g["gameIcon"],
                "color": g["gameColor"],
                "gamesPlayed": g["gamesPlayed"],
                "bestScore": g["bestScore"],
                "averageScore": g["averageScore"],
                "skillProgress": g["skillProgress"],
            }
            for g in breakdown
        ],
        "recentActivity": [
            {
                "gameType": s.get("gameType"),
                "gameName": analytics.game_display_name(s.get("gameType")),
                "difficulty": s.get("difficulty"),
                "difficultyName": s.get("difficultyName"),
                "score": s.get("score"),
                "accuracy": s.get("accuracy"),
                "timeTaken": s.get("timeTakenSeconds"),
                "playedAt": s.get("createdAt"),
                "moves": s.get("totalMoves"),
            }
            for s in summary["recentSessions"][:5]
        ],
        "weeklyActivity": summary["weeklyActivity"],
        "recommendations": progress_recommendations(summary),
    }

def progress_recommendations(summary):
    recs = []
    if summary["currentStreak"] >= 3:
        recs.append({
            "type": "streak",
            "icon": "bi-check-circle-fill",
            "title": "Keep it up!",
            "message": f"Your streak of {summary['currentStreak']} days is excellent. Consistency is key to cognitive improvement.",
        })
    breakdown = summary["gameTypeBreakdown"]
    if len(breakdown) > 1:
        least = min(breakdown, key=lambda g: g["gamesPlayed"])
        recs.append({
            "type": "try",
            "icon": "bi-graph-up",
            "title": "Try Something New",
            "message": f"You haven't played much {analytics.game_display_name(least['gameType'])}. Give it a try!",
        })
    recs.append({
        "type": "goal",
        "icon": "bi-target",
        "title": "Weekly Goal",
        "message": f"Aim for {max(10, summary['totalGamesPlayed'] + 5)} games this week to keep improving!",
    })
    return recs

def extra_metric(stats):
    game = stats["gameType"]
    if game == "MemoryMatch":
        return f"{stats['averageMoves']:.1f}", "Avg. Moves"
    if game == "ReactionTrainer":
        return f"{stats['averageReactionTime']:.0f}ms", "Avg. Reaction"
    if game == "SortingTask":
        return f"{stats['averageAccuracy']:.0f}%", "Accuracy Rate"
    return "", ""

def statistics_page(summary):
    total = summary["totalGamesPlayed"]
    played = summary["totalTimePlayed"]
    game_stats = []
    for g in summary["gameTypeBreakdown"]:
        metric, label = extra_metric(g)
        game_stats.append({
            "gameType": g["gameType"],
            "gameName": analytics.game_display_name(g["gameType"]),
            "icon": g["gameIcon"],
            "color": g["gameColor"],
            "gamesPlayed": g["gamesPlayed"],
            "averageScore": g["averageScore"],
            "bestScore": g["bestScore"],
            "averageAccuracy": g["averageAccuracy"],
            "extraMetric": metric,
            "extraMetricLabel": label,
        })
    return {
        "totalSessions": total,
        "averageSessionDuration": round(played / 60 / total, 1) if total else 0,
        "overallAccuracy": summary["averageAccuracy"],
        "totalPoints": sum(int(num(s, "score")) for s in summary["recentSessions"]) if total else 0,
        "totalTimePlayed": played,
        "gameStats": game_stats,
        "weeklyActivity": analytics.with_bar_heights(summary["weeklyActivity"]),
        "difficultyProgression": difficulty_progression(summary),
        "timeInsights": time_insights(summary),
        "achievements": achievements(summary),
    }

def difficulty_progression(summary):
    breakdown = summary["gameTypeBreakdown"]
    top = max((g["currentLevel"] for g in breakdown), default=1)

    def status(level):
        if level == 4:
            return "active" if top >= 4 else "locked"
        if top > level:
            return "completed"
        return "active" if top == level else "locked"

    names = ("Beginner", "Intermediate", "Advanced", "Expert")
    return {
        "currentLevel": top,
        "currentLevelName": analytics.difficulty_name(top),
        "progressToNext": _mean(g["skillProgress"] for g in breakdown),
        "levels": [{"level": i, "name": name, "status": status(i)} for i, name in enumerate(names, start=1)],
    }

def format_duration(seconds):
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}min"
    if minutes > 0:
        return f"{minutes}min {secs}s"
    return f"{secs}s"

def time_insights(summary):
    total = summary["totalGamesPlayed"]
    has_data = total > 0
    avg_duration = summary["totalTimePlayed"] // total if has_data else 0

    best_value, best_detail = "Play more to discover!", "We'll analyze when you perform best."
    if has_data and summary["recentSessions"]:
        counts = {}
        for s in summary["recentSessions"]:
            label = analytics.time_of_day_label(_created(s).hour)
            counts[label] = counts.get(label, 0) + 1
        ordered = [(label, counts.get(label, 0)) for label, _ in analytics.TIME_OF_DAY]
        label, count = max(ordered, key=lambda t: t[1])
        if count > 0:
            best_value, best_detail = label, f"You've played {count} game(s) during this time."

    day_value, day_detail = "Not enough data", "Keep playing to see patterns."
    if has_data and summary["weeklyActivity"]:
        top = max(summary["weeklyActivity"], key=lambda a: a["gamesPlayed"])
        if top["gamesPlayed"] > 0:
            day_value = top["day"]
            day_detail = f"{top['day']} with {top['gamesPlayed']} game(s) this week."

    minutes = avg_duration / 60.0
    return [
        {
            "icon": "bi-brightness-high",
            "iconClass": "morning",
            "title": "Best Performance Time",
            "value": best_value,
            "detail": best_detail,
        },
        {
            "icon": "bi-calendar3-week",
            "iconClass": "calendar",
            "title": "Most Active Day",
            "value": day_value,
            "detail": day_detail,
        },
        {
            "icon": "bi-hourglass-split",
            "iconClass": "hourglass",
            "title": "Avg. Session Duration",
            "value": f"{minutes:.1f} Minutes" if minutes >= 1 else f"{avg_duration} Seconds",
            "detail": f"Your sessions last on average {avg_duration} seconds." if has_data else "Play games to track session times.",
        },
        {
            "icon": "bi-play-fill",
            "iconClass": "total",
            "title": "Total Time Played",
            "value": format_duration(summary["totalTimePlayed"]),
            "detail": "Total time invested in cognitive training.",
        },
    ]

def achievements(summary):
    streak = summary["currentStreak"]
    games = summary["totalGamesPlayed"]
    accuracy = summary["averageAccuracy"]
    if streak >= 7:
        streak_name = "7-Day Streak"
    elif streak >= 3:
        streak_name = "3-Day Streak"
    else:
        streak_name = "First Streak"
    return [
        {
            "icon": "bi-fire",
            "iconClass": "fire",
            "name": streak_name,
            "description": "Keep it up!" if streak >= 3 else "Play 3 days in a row",
            "unlocked": streak >= 3,
        },
        {
            "icon": "bi-lightning-fill",
            "iconClass": "lightning",
            "name": "Quick Start",
            "description": "Fast starter!" if games >= 5 else "Complete 5 games",
            "unlocked": games >= 5,
        },
        {
            "icon": "bi-bullseye",
            "iconClass": "bullseye",
            "name": "Sharpshooter",
            "description": "Amazing accuracy!" if accuracy >= 90 else "Score 90%+ accuracy",
            "unlocked": accuracy >= 90,
        },
        {
            "icon": "bi-graph-up",
            "iconClass": "growth",
            "name": "Steady Progress",
            "description": "Always improving!" if games >= 10 else "Play 10+ games",
            "unlocked": games >= 10,
        },
    ]
