import concurrent.futures
import logging
import random
import time

from openai import OpenAI, APIStatusError

from neuropath.config import config
from neuropath.utils.helpers import (
    _clamp, _get_bool, _get_float, _get_int, _get_str, _get_str_list, _iso, _parse_json_object, _utcnow,
)

log = logging.getLogger("neuropath.ai")

# (default, low, high) for numbers, (default, choices) for enums, plain default for bools.
ADJUSTMENT_SCHEMAS = {
    "memorymatch": {
        "gridColumns": (4, 2, 6),
        "gridRows": (4, 2, 6),
        "totalPairs": (8, 4, 18),
        "flipAnimationMs": (600, 200, 2000),
        "visualComplexity": ("moderate", ("simple", "moderate", "complex")),
        "timePressure": ("moderate", ("relaxed", "moderate", "challenging")),
        "cardDesign": ("colorful", ("basic", "colorful", "themed")),
    },
    "reactiontrainer": {
        "targetCount": (10, 5, 20),
        "targetDisplayMs": (1000, 500, 3000),
        "targetSize": ("medium", ("small", "medium", "large")),
        "distractors": False,
        "speedProgression": ("steady", ("steady", "increasing", "random")),
        "feedbackIntensity": ("normal", ("subtle", "normal", "vibrant")),
    },
    "sortingtask": {
        "itemCount": (8, 4, 15),
        "categoryCount": (3, 2, 5),
        "timeLimit": (120, 30, 300),
        "hintLevel": ("subtle", ("none", "subtle", "helpful")),
        "dragSensitivity": ("normal", ("precise", "normal", "forgiving")),
        "categoryTheme": ("colors", ("colors", "shapes", "animals", "mixed")),
    },
    "generic": {
        "difficultyMultiplier": (1.0, 0.5, 2.0),
        "timeMultiplier": (1.0, 0.5, 2.0),
        "hintEnabled": True,
    },
}

def _schema_for(game_type):
    return ADJUSTMENT_SCHEMAS.get((game_type or "").lower(), ADJUSTMENT_SCHEMAS["generic"])

def default_game_adjustments(game_type):
    out = {}
    for key, spec in _schema_for(game_type).items():
        out[key] = spec[0] if isinstance(spec, tuple) else spec
    return out

def extract_game_adjustments(parsed, game_type):
    """Read ``gameAdjustments`` from an LLM reply, clamped to the game's schema."""
    raw = parsed.get("gameAdjustments") if isinstance(parsed, dict) else None
    if not isinstance(raw, dict):
        return default_game_adjustments(game_type)
    out = {}
    for key, spec in _schema_for(game_type).items():
        if isinstance(spec, bool):
            out[key] = _get_bool(raw, key, spec)
        elif isinstance(spec[1], tuple):
            value = _get_str(raw, key, spec[0])
            out[key] = value if value in spec[1] else spec[0]
        elif isinstance(spec[0], float):
            out[key] = _clamp(_get_float(raw, key, spec[0]), spec[1], spec[2])
        else:
            out[key] = _clamp(_get_int(raw, key, spec[0]), spec[1], spec[2])
    return out

def confidence_for(score):
    for floor, value in ((85, 0.95), (75, 0.85), (65, 0.75), (55, 0.70), (45, 0.60), (35, 0.55)):
        if score >= floor:
            return value
    return 0.50


SOUND_CURATOR_SYSTEM_PROMPT = """You are a professional sound therapy curator AI. Your role is to create UNIQUE and personalized therapeutic sound mixes based on how users are feeling.

You have deep knowledge of:
- Sound therapy and its psychological benefits
- How different sounds affect mood and mental state
- Optimal sound combinations for relaxation, focus, sleep, stress relief
- Volume balancing for harmonious mixes

CRITICAL VARIETY RULES:
- DO NOT always recommend Rain or Fireplace - explore the FULL range of available sounds
- Each recommendation should feel fresh and tailored to the specific mood
- Consider less common but effective sounds like: Singing Bowls, Tibetan Bells, Wind Chimes, Forest Birds, Crickets, Bamboo Flute, Ambient Pads
- Mix categories creatively - combine nature with instruments, or white noise with ambient sounds
- Vary your volume recommendations (don't always use 70/60 pattern)

Guidelines:
- Choose 2-4 sounds that complement each other
- Set volumes creatively: try 55, 65, 75, 45, 85 - not just 60/70
- Be empathetic and understanding in your explanation
- Keep the mix name creative and unique each time
- Duration should be 5, 10, 15, 30, or 60 minutes based on their needs
- Surprise the user with thoughtful, unexpected combinations"""

SOUND_CURATION_SCHEMA = {
    "type": "object",
    "properties": {
        "mixName": {"type": "string", "description": "A creative, descriptive name for this sound mix"},
        "recommendedSounds": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": 2,
            "maxItems": 4,
            "description": "List of 2-4 sound names from the available sounds",
        },
        "volumeSettings": {
            "type": "object",
            "description": "Volume for each sound (0-100). Main sounds 60-80, accents 40-60",
            "additionalProperties": {"type": "integer", "minimum": 20, "maximum": 100},
        },
        "explanation": {
            "type": "string",
            "description": "A warm, personalized explanation (2-3 sentences) of why these sounds were chosen for the user's mood",
        },
        "wellnessTip": {
            "type": "string",
            "description": "A helpful wellness tip related to their mood and the recommended sounds",
        },
        "recommendedDuration": {
            "type": "integer",
            "enum": [5, 10, 15, 30, 60],
            "description": "Recommended session duration in minutes",
        },
        "mixCategory": {
            "type": "string",
            "enum": ["relaxation", "focus", "sleep", "stress-relief", "meditation", "energy", "comfort"],
            "description": "The primary purpose of this mix",
        },
        "isNewCombination": {
            "type": "boolean",
            "description": "True if this is a new/different combination from user's previous sounds, false if recommending similar",
        },
    },
    "required": [
        "mixName", "recommendedSounds", "volumeSettings", "explanation",
        "wellnessTip", "recommendedDuration", "mixCategory", "isNewCombination",
    ],
}

FALLBACK_MIXES = {
    "sleep": [
        ({"Rain": 65, "Pink Noise": 45, "Piano": 35}, "Peaceful Slumber"),
        ({"Ocean Waves": 70, "Ambient Pads": 55, "Wind Chimes": 30}, "Dreamy Tides"),
        ({"Crickets": 50, "Stream": 60, "Singing Bowls": 40}, "Night Garden"),
        ({"Brown Noise": 55, "Thunderstorm": 65}, "Deep Rest"),
    ],
    "focus": [
        ({"Brown Noise": 60, "Coffee Shop": 50}, "Deep Focus Zone"),
        ({"White Noise": 55, "Rain": 45}, "Concentration Station"),
        ({"Stream": 65, "Forest Birds": 40}, "Nature's Office"),
        ({"Pink Noise": 50, "Bamboo Flute": 55}, "Zen Productivity"),
    ],
    "stress": [
        ({"Ocean Waves": 70, "Singing Bowls": 50}, "Calm Waters"),
        ({"Tibetan Bells": 45, "Stream": 60, "Wind": 40}, "Mountain Serenity"),
        ({"Ambient Pads": 65, "Rain": 50, "Wind Chimes": 35}, "Gentle Embrace"),
        ({"Forest": 60, "Piano": 55}, "Peaceful Grove"),
    ],
    "default": [
        ({"Rain": 65, "Fireplace": 55}, "Cozy Retreat"),
        ({"Ocean Waves": 70, "Wind Chimes": 40}, "Seaside Calm"),
        ({"Forest": 55, "Stream": 60, "Forest Birds": 45}, "Woodland Walk"),
        ({"Ambient Pads": 65, "Singing Bowls": 50}, "Ethereal Space"),
        ({"Thunderstorm": 60, "Fireplace": 55}, "Stormy Comfort"),
        ({"Crickets": 50, "Campfire": 60, "Wind": 35}, "Summer Night"),
    ],
}

MOOD_KEYWORDS = (
    ("sleep", ("sleep", "tired", "insomnia")),
    ("focus", ("focus", "work", "study", "concentrate")),
    ("stress", ("stress", "anxious", "anxiety", "worried")),
)

def fallback_mix(mood):
    mood = (mood or "").lower()
    options = FALLBACK_MIXES["default"]
    for name, words in MOOD_KEYWORDS:
        if any(w in mood for w in words):
            options = FALLBACK_MIXES[name]
            break
    volumes, mix_name = random.choice(options)
    return list(volumes), dict(volumes), mix_name


class AIService:
    def __init__(self):
        self.client = OpenAI(
            base_url=config.LLM_BASE_URL,
            api_key=config.LLM_API_KEY,
        )
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=config.LLM_MAX_WORKERS)

    def _chat_completion_with_timeout(self, model, messages, timeout_s=60, **kwargs):
        fut = self.executor.submit(
            self.client.chat.completions.create,
            model=model, messages=messages, timeout=timeout_s, **kwargs,
        )
        return fut.result(timeout=timeout_s)

    def _complete_json(self, model, system, prompt, timeout_s, **kwargs):
        response = self._chat_completion_with_timeout(
            model=model,
            messages=[
                {'role': 'system', 'content': system},
                {'role': 'user', 'content': prompt},
            ],
            timeout_s=timeout_s,
            **kwargs,
        )
        content = response.choices[0].message.content or ""
        log.info(f"[AI] Got response ({len(content)} chars)")
        return _parse_json_object(content)

    # Post-game coaching

    def analyze_game(self, child_name, total_correct, total_wrong, current_difficulty, current_pairs=8):
        """Encouragement and Memory Match adjustments for one finished game.

        Never raises for LLM failures: an unreachable or silent server yields a
        locally computed answer, a non-2xx reply yields the backup answer.
        """
        try:
            prompt = self._child_prompt(total_correct, total_wrong, current_difficulty)
            log.info(f"[AI] Analyzing moves for {child_name}")
            parsed = self._complete_json(
                config.LLM_MODEL,
                "You are a friendly coach for children. Output ONLY a JSON object. "
                "No thinking, no explanations, no markdown. Just the JSON.",
                prompt,
                timeout_s=45,
                temperature=0.01,
                max_tokens=2000,
                top_p=1.0,
            )
            if not _get_str(parsed, "encouragement").strip():
                log.warning("[AI] AI response invalid - using local analysis")
                return self.local_adjustment(total_correct, total_wrong, current_difficulty)

            score = _get_float(parsed, "performanceScore", 0.0)
            confidence = _get_float(parsed, "confidence", 0.0)
            if confidence < 0.5 or confidence > 1.0:
                confidence = confidence_for(score)
            adjustments = parsed.get("gameAdjustments")
            return {
                "encouragement": parsed["encouragement"],
                "effortNote": _get_str(parsed, "effortNote"),
                "funMessage": _get_str(parsed, "funMessage"),
                "performanceScore": score,
                "nextDifficultyLevel": _get_int(parsed, "nextDifficultyLevel", current_difficulty),
                "confidence": confidence,
                "gameAdjustments": adjustments if isinstance(adjustments, dict) else None,
            }
        except concurrent.futures.TimeoutError:
            log.warning("[AI] Timeout after 45 seconds - using local analysis")
            return self.local_adjustment(total_correct, total_wrong, current_difficulty)
        except APIStatusError as e:
            log.warning(f"[AI] LM Studio not responding ({e.status_code}) - using backup response")
            return self.backup_adjustment(child_name, total_correct, total_wrong, current_difficulty, current_pairs)
        except Exception as e:
            log.error(f"[AI] Error analyzing game: {e}")
            return self.local_adjustment(total_correct, total_wrong, current_difficulty)

    @staticmethod
    def _accuracy(correct, wrong):
        return correct * 100.0 / (correct + wrong) if correct > 0 else 0.0

    @staticmethod
    def _next_level(accuracy, current):
        if accuracy >= 75:
            return min(5, current + 1)
        if accuracy < 50:
            return max(1, current - 1)
        return current

    def _child_prompt(self, correct, wrong, current_difficulty):
        accuracy = round(self._accuracy(correct, wrong), 2)
        level = self._next_level(accuracy, current_difficulty)
        grid = 4 + level
        speed = 300 if accuracy >= 75 else 400 if accuracy >= 50 else 500
        complexity = "colorful" if level >= 4 else "medium" if level >= 2 else "simple"
        return f"""You are a warm, encouraging coach for a child doing memory therapy.

GAME RESULTS TO ANALYZE:
- Correct matches found: {correct}
- Wrong attempts: {wrong}
- Accuracy: {accuracy:g}%
- Total moves: {correct + wrong}
- Improvement trend: 0 (higher = improving)
- Average thinking time: 0ms

EVALUATE THEIR PERFORMANCE (0-100 scale):
- Below 40: Needs practice (score 20-40)
- 40-60: Learning well (score 45-65)
- 60-75: Good improvement (score 65-80)
- Above 75: Excellent! (score 80-95)

IMPORTANT: performanceScore should reflect your professional evaluation of their learning, NOT just echo their accuracy.

Create encouragement based on their ACTUAL results. Respond with ONLY this JSON:
{{
  "encouragement": "[Create specific praise for what they accomplished - mention their actual numbers]",
  "effortNote": "[Describe what their performance reveals about their strategy - acknowledge both strengths and areas to work on]",
  "funMessage": "[Playful, motivating message about coming challenges]",
  "performanceScore": [YOUR PROFESSIONAL EVALUATION: 0-100, based on accuracy, improvement, and consistency],
  "nextDifficultyLevel": {level},
  "confidence": {confidence_for(accuracy)},
  "gameAdjustments": {{
    "gridColumns": {grid},
    "gridRows": {grid},
    "totalPairs": {6 + level * 2},
    "flipAnimationMs": {speed},
    "visualComplexity": "{complexity}",
    "timePressure": "{'mild' if accuracy >= 75 else 'none'}",
    "cardDesign": "animals"
  }}
}}"""

    def local_adjustment(self, correct, wrong, current_difficulty):
        accuracy = round(self._accuracy(correct, wrong), 2)
        level = self._next_level(accuracy, current_difficulty)
        grid = 4 + level
        return {
            "encouragement": self._encouragement(accuracy),
            "effortNote": self._effort_note(accuracy, correct, wrong),
            "funMessage": self._fun_message(accuracy, correct),
            "performanceScore": accuracy,
            "nextDifficultyLevel": level,
            "confidence": confidence_for(accuracy),
            "gameAdjustments": {
                "gridColumns": grid,
                "gridRows": grid,
                "totalPairs": 6 + level * 2,
                "flipAnimationMs": 300 if accuracy >= 75 else 400 if accuracy >= 50 else 500,
                "visualComplexity": "colorful" if level >= 4 else "medium" if level >= 2 else "simple",
                "timePressure": "mild" if accuracy >= 75 else "none",
                "cardDesign": "animals",
            },
        }

    def backup_adjustment(self, child_name, correct, wrong, current_difficulty, current_pairs):
        accuracy = round(self._accuracy(correct, wrong), 2)
        if accuracy >= 75:
            encouragement = f"🌟 Amazing, {child_name}! Superstar!"
            effort = "You're super fast!"
            pairs, speed, complexity = min(15, current_pairs + 2), 350, "colorful"
        elif accuracy >= 50:
            encouragement = f"😊 Great job, {child_name}! Getting it!"
            effort = "You're thinking carefully!"
            pairs, speed, complexity = current_pairs, 400, "medium"
        else:
            encouragement = f"💪 Keep going, {child_name}! Learning!"
            effort = "Keep practicing!"
            pairs, speed, complexity = max(6, current_pairs - 2), 500, "simple"
        return {
            "encouragement": encouragement,
            "effortNote": effort,
            "funMessage": "Every game makes your brain stronger! 🧠",
            "performanceScore": accuracy,
            "nextDifficultyLevel": self._next_level(accuracy, current_difficulty),
            "confidence": confidence_for(accuracy),
            "gameAdjustments": {
                "gridColumns": 4,
                "gridRows": 4,
                "totalPairs": pairs,
                "flipAnimationMs": speed,
                "visualComplexity": complexity,
                "timePressure": "mild" if accuracy >= 75 else "none",
                "cardDesign": "animals",
            },
        }

    @staticmethod
    def _encouragement(accuracy):
        if accuracy >= 85:
            verb = random.choice(("crushed", "dominated", "destroyed", "rocked"))
            adjective = random.choice(("incredible", "amazing", "superb", "fantastic"))
            return f"🌟 {verb} it! Memory {adjective}!"
        if accuracy >= 75:
            return f"👍 {random.choice(('Good', 'Great'))} job! Keep {random.choice(('pushing', 'going', 'learning'))}!"
        subject = random.choice(("You", "Keep", "Let's"))
        action = random.choice(("can do this", "got this", "try again"))
        tail = random.choice(("Every game teaches", "Practice helps", "You're learning"))
        return f"💪 {subject} {action}! {tail}!"

    @staticmethod
    def _effort_note(accuracy, correct, wrong):
        total = correct + wrong
        return random.choice((
            f"{correct} out of {total} correct - great consistency!",
            f"Getting {accuracy:g}% - you're improving!",
            f"Found {correct} matches - nice work!",
            f"{total} total attempts - keep practicing!",
        ))

    @staticmethod
    def _fun_message(accuracy, correct):
        emoji = random.choice(("🚀", "🧠", "⭐"))
        return random.choice((
            f"You found {correct} matches - your brain is sharp! {emoji}",
            f"{round(accuracy)}% accuracy - you're a memory champion! {emoji}",
            f"Amazing performance with {correct} correct moves! {emoji}",
            f"Your memory skills are level {correct // 2} strong! {emoji}",
        ))

    # Session history analysis

    def unified_game_analysis(self, data, is_therapist, game_type):
        if is_therapist:
            prompt = (
                f"Clinical analysis for therapist. Data: {data}\n\n"
                'Return JSON with: targetAudience="therapist", overallAssessment, memoryAnalysis, reactionAnalysis, '
                "sortingAnalysis, patternAnalysis, cognitiveStrengths (array), areasOfConcern (array), progressSummary, "
                "therapyRecommendations (array), nextSessionFocus, riskLevel (Low/Moderate/High), performanceScore (0-100), "
                "nextDifficultyLevel (1-10), confidence (0.5-1.0), gameAdjustments object, "
                "encouragingNote (positive message for patient)."
            )
        else:
            prompt = (
                f"Fun feedback for child. Data: {data}\n\n"
                'Return JSON with: targetAudience="user", encouragement (positive message), effortNote, '
                "funMessage (with emoji), performanceScore (0-100), nextDifficultyLevel (1-10), "
                f"confidence (0.5-1.0), gameAdjustments object for {game_type}."
            )
        try:
            log.info(f"[AI-UNIFIED] Sending {'therapist' if is_therapist else 'user'} analysis request")
            parsed = self._complete_json(
                config.LLM_MODEL,
                "Output only valid JSON. Be concise.",
                prompt,
                timeout_s=180,
                temperature=0.3 if is_therapist else 0.7,
                max_tokens=3000,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            log.error(f"[AI-UNIFIED] Error: {e}")
            return self.default_unified_analysis(is_therapist, game_type)

        return {
            "targetAudience": "therapist" if is_therapist else "user",
            "encouragement": _get_str(parsed, "encouragement", "Great job playing today!"),
            "effortNote": _get_str(parsed, "effortNote", "You're putting in great effort!"),
            "funMessage": _get_str(parsed, "funMessage", "Keep up the awesome work!"),
            "performanceScore": _get_int(parsed, "performanceScore", 50),
            "nextDifficultyLevel": _get_int(parsed, "nextDifficultyLevel", 1),
            "confidence": _get_float(parsed, "confidence", 0.7),
            "gameAdjustments": extract_game_adjustments(parsed, game_type),
            "overallAssessment": _get_str(parsed, "overallAssessment", "Review session data for assessment."),
            "memoryAnalysis": _get_str(parsed, "memoryAnalysis", "No Memory Match data available."),
            "reactionAnalysis": _get_str(parsed, "reactionAnalysis", "No Reaction data available."),
            "sortingAnalysis": _get_str(parsed, "sortingAnalysis", "No Sorting data available."),
            "patternAnalysis": _get_str(parsed, "patternAnalysis", "No Pattern Copy data available."),
            "cognitiveStrengths": _get_str_list(parsed, "cognitiveStrengths"),
            "areasOfConcern": _get_str_list(parsed, "areasOfConcern"),
            "progressSummary": _get_str(parsed, "progressSummary", "Insufficient data for trend analysis."),
            "therapyRecommendations": _get_str_list(parsed, "therapyRecommendations"),
            "nextSessionFocus": _get_str(parsed, "nextSessionFocus", "Continue current exercises."),
            "riskLevel": _get_str(parsed, "riskLevel", "Low"),
            "encouragingNote": _get_str(parsed, "encouragingNote", "Keep up the great work! Every session brings progress."),
            "generatedAt": _iso(_utcnow()),
            "source": "Phi-4-mini AI",
        }

    def default_unified_analysis(self, is_therapist, game_type):
        return {
            "targetAudience": "therapist" if is_therapist else "user",
            "encouragement": "Great job playing today! Every game helps your brain grow stronger! 🌟",
            "effortNote": "You're putting in great effort! Keep practicing!",
            "funMessage": "Ready for your next adventure? Your brain is a superhero! 🦸‍♂️",
            "performanceScore": 50,
            "nextDifficultyLevel": 1,
            "confidence": 0.7,
            "gameAdjustments": default_game_adjustments(game_type),
            "overallAssessment": "AI analysis unavailable. Please review statistical data manually.",
            "memoryAnalysis": "Check Memory Match statistics in the data panel.",
            "reactionAnalysis": "Check Reaction Trainer statistics in the data panel.",
            "sortingAnalysis": "Check Sorting Task statistics in the data panel.",
            "patternAnalysis": "Check Pattern Copy statistics in the data panel.",
            "cognitiveStrengths": ["Data available in statistics panel"],
            "areasOfConcern": ["Review accuracy metrics manually"],
            "progressSummary": "Review improvement percentages in each game category.",
            "therapyRecommendations": ["Continue regular cognitive exercises", "Monitor progress trends"],
            "nextSessionFocus": "Review recent performance and adjust accordingly.",
            "riskLevel": "Unknown",
            "encouragingNote": "Every session is progress! Keep encouraging consistent practice.",
            "generatedAt": _iso(_utcnow()),
            "source": "Default (AI unavailable)",
        }

    def therapist_game_analysis(self, summary):
        prompt = f"""You are a cognitive rehabilitation therapist AI assistant. Analyze this patient's game performance data and provide a professional assessment.

{summary}

Based on this data, provide a DETAILED analysis in the following JSON format. Be specific and reference actual numbers from the data:

{{
  "overallAssessment": "A 2-3 sentence summary of the patient's overall cognitive performance",
  "memoryAnalysis": "Specific analysis of Memory Match performance if played, otherwise say 'No Memory Match data'",
  "reactionAnalysis": "Specific analysis of Reaction Trainer performance if played, otherwise say 'No Reaction data'",
  "sortingAnalysis": "Specific analysis of Sorting Task performance if played, otherwise say 'No Sorting data'",
  "cognitiveStrengths": ["List", "of", "identified", "strengths"],
  "areasOfConcern": ["List", "of", "areas", "needing", "attention"],
  "progressSummary": "Summary of improvement or decline trends observed",
  "therapyRecommendations": ["Specific", "actionable", "therapy", "recommendations"],
  "nextSessionFocus": "What to focus on in the next therapy session",
  "riskLevel": "Low/Moderate/High based on performance patterns",
  "encouragingNote": "A positive, encouraging note for the therapist to share with the patient"
}}

Output ONLY the JSON object. No explanations, no markdown, just valid JSON."""
        try:
            log.info("[AI-ANALYSIS] Sending data to the local model...")
            parsed = self._complete_json(
                config.LLM_MODEL,
                "You are an expert cognitive rehabilitation therapist AI. "
                "Analyze patient data and provide professional assessments in JSON format only.",
                prompt,
                timeout_s=180,
                temperature=0.3,
                max_tokens=2000,
            )
        except Exception as e:
            log.error(f"[AI-ANALYSIS] Error: {e}")
            return self.fallback_therapist_analysis()

        return {
            "overallAssessment": _get_str(parsed, "overallAssessment", "Review session data for assessment."),
            "memoryAnalysis": _get_str(parsed, "memoryAnalysis", "No Memory Match data available."),
            "reactionAnalysis": _get_str(parsed, "reactionAnalysis", "No Reaction data available."),
            "sortingAnalysis": _get_str(parsed, "sortingAnalysis", "No Sorting data available."),
            "cognitiveStrengths": _get_str_list(parsed, "cognitiveStrengths"),
            "areasOfConcern": _get_str_list(parsed, "areasOfConcern"),
            "progressSummary": _get_str(parsed, "progressSummary", "Insufficient data for trend analysis."),
            "therapyRecommendations": _get_str_list(parsed, "therapyRecommendations"),
            "nextSessionFocus": _get_str(parsed, "nextSessionFocus", "Continue current exercises."),
            "riskLevel": _get_str(parsed, "riskLevel", "Low"),
            "encouragingNote": _get_str(
                parsed, "encouragingNote", "Great progress! Keep up the consistent effort - every session matters! 🌟"
            ),
            "generatedAt": _iso(_utcnow()),
            "source": "Phi-4-mini AI",
        }

    def fallback_therapist_analysis(self):
        return {
            "overallAssessment": "AI analysis is currently unavailable. Please review the statistical data above for performance insights.",
            "memoryAnalysis": "Check Memory Match statistics in the game breakdown section.",
            "reactionAnalysis": "Check Reaction Trainer statistics in the game breakdown section.",
            "sortingAnalysis": "Check Sorting Task statistics in the game breakdown section.",
            "cognitiveStrengths": ["Data available in statistics panel"],
            "areasOfConcern": ["Review accuracy metrics for areas needing attention"],
            "progressSummary": "Review the improvement percentages in each game category.",
            "therapyRecommendations": [
                "Continue regular cognitive exercises",
                "Focus on games with lower accuracy scores",
            ],
            "nextSessionFocus": "Review recent session performance and adjust difficulty accordingly.",
            "riskLevel": "Unable to assess - review data manually",
            "encouragingNote": "Every session is progress! Keep encouraging consistent practice.",
            "generatedAt": _iso(_utcnow()),
            "source": "Fallback (AI unavailable)",
        }

    def activity_analysis(self, data, activity_type=None):
        prompt = f"""You are a cognitive rehabilitation therapist AI assistant. Analyze this patient's ACTIVITY (not game) performance data and provide a wellness-focused assessment.

{data}

These are WELLNESS ACTIVITIES, not games. Focus on:
- Emotional well-being and mood improvements
- Mindfulness and relaxation progress
- Cognitive exercise engagement
- Healthy habit formation

Provide your response as JSON with these fields:
- overallWellnessAssessment: Summary of the patient's wellness journey
- activityEngagement: How well they're engaging with activities
- moodAnalysis: Analysis of mood patterns and improvements
- strengthsIdentified: Array of wellness strengths
- areasForGrowth: Array of areas to focus on
- wellnessRecommendations: Array of specific recommendations
- encouragingMessage: A warm, supportive message for the patient
- therapistNotes: Clinical notes for the therapist
- engagementLevel: High/Medium/Low
- wellnessScore: 0-100 overall wellness score

Output ONLY valid JSON."""
        try:
            log.info(f"[ACTIVITY-AI] Sending {activity_type or 'all'} activity data to the local model...")
            parsed = self._complete_json(
                config.LLM_MODEL,
                "You are a supportive cognitive rehabilitation therapist AI. "
                "Focus on wellness, emotional support, and positive reinforcement. Output only valid JSON.",
                prompt,
                timeout_s=120,
                temperature=0.5,
                max_tokens=2000,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            log.error(f"[ACTIVITY-AI] Error: {e}")
            return self.default_activity_analysis()

        return {
            "overallWellnessAssessment": _get_str(parsed, "overallWellnessAssessment", "Review activity data for wellness assessment."),
            "activityEngagement": _get_str(parsed, "activityEngagement", "Good engagement with activities."),
            "moodAnalysis": _get_str(parsed, "moodAnalysis", "Mood tracking shows consistent participation."),
            "strengthsIdentified": _get_str_list(parsed, "strengthsIdentified"),
            "areasForGrowth": _get_str_list(parsed, "areasForGrowth"),
            "wellnessRecommendations": _get_str_list(parsed, "wellnessRecommendations"),
            "encouragingMessage": _get_str(
                parsed, "encouragingMessage", "You're doing great! Keep up the wonderful work on your wellness journey! 🌟"
            ),
            "therapistNotes": _get_str(parsed, "therapistNotes", "Patient showing consistent engagement with wellness activities."),
            "engagementLevel": _get_str(parsed, "engagementLevel", "Medium"),
            "wellnessScore": _get_int(parsed, "wellnessScore", 70),
            "generatedAt": _iso(_utcnow()),
            "source": "Phi-4-mini AI",
        }

    def default_activity_analysis(self):
        return {
            "overallWellnessAssessment": "AI analysis unavailable. Please review activity statistics for wellness insights.",
            "activityEngagement": "Check activity completion rates in the statistics panel.",
            "moodAnalysis": "Review mood tracking data for emotional patterns.",
            "strengthsIdentified": ["Consistent participation", "Completing activities regularly"],
            "areasForGrowth": ["Try variety of activities", "Track mood before and after sessions"],
            "wellnessRecommendations": [
                "Continue daily journaling for emotional processing",
                "Practice breathing exercises for stress management",
                "Engage with word activities for cognitive stimulation",
            ],
            "encouragingMessage": "Every activity you complete is a step toward better wellness! Keep going! 🌟",
            "therapistNotes": "Review statistical data for detailed activity analysis.",
            "engagementLevel": "Medium",
            "wellnessScore": 70,
            "generatedAt": _iso(_utcnow()),
            "source": "Default (AI unavailable)",
        }

    # Sound therapy

    def curate_sounds(self, mood, sounds, previous=None):
        """Build a sound mix for ``mood`` from ``sounds`` (dicts with name, category, description)."""
        log.info(f"[AI-SOUND-CURATOR] User mood: {mood}")
        available = "\n".join(
            f"- {s.get('name', '')} ({s.get('category', '')}): {s.get('description', '')}" for s in sounds
        )
        previous_note = ""
        if previous:
            previous_note = (
                f"\n\nIMPORTANT: The user recently used these sounds: {', '.join(previous)}. "
                "Sometimes recommend similar combinations if they fit the mood well, but also explore different "
                "sounds occasionally for variety. Use your judgment - if the mood matches previous sounds, "
                "feel free to recommend them again."
            )
        prompt = (
            f'User\'s current mood/situation: "{mood}"\n\n'
            f"Available sounds to choose from:\n{available}{previous_note}\n\n"
            "Create a personalized sound therapy mix for this user."
        )
        try:
            parsed = self._complete_json(
                config.LLM_REASONING_MODEL,
                SOUND_CURATOR_SYSTEM_PROMPT,
                prompt,
                timeout_s=30,
                temperature=0.9,
                max_tokens=600,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "sound_therapy_curation",
                        "strict": True,
                        "schema": SOUND_CURATION_SCHEMA,
                    },
                },
            )
        except concurrent.futures.TimeoutError:
            log.warning("[AI-SOUND-CURATOR] Request timed out")
            return {"success": False, "error": "AI request timed out. Please try again."}
        except APIStatusError as e:
            log.warning(f"[AI-SOUND-CURATOR] Model returned error: {e.status_code}")
            return {"success": False, "error": "AI service temporarily unavailable. Please try again."}
        except Exception as e:
            log.error(f"[AI-SOUND-CURATOR] Error: {e}")
            return {"success": False, "error": "Failed to generate AI recommendation. Please try again."}

        mix_name = _get_str(parsed, "mixName")
        explanation = _get_str(parsed, "explanation")
        valid = {s.get("name") for s in sounds}
        recommended = [s for s in _get_str_list(parsed, "recommendedSounds") if s in valid]
        volumes = parsed.get("volumeSettings")
        volume_settings = {}
        if isinstance(volumes, dict):
            for name in recommended:
                volume = _get_int(volumes, name, None)
                if volume is not None:
                    volume_settings[name] = volume
        if not recommended:
            recommended, volume_settings, mix_name = fallback_mix(mood)
            explanation = "A carefully curated combination to help you feel better."

        is_new = parsed.get("isNewCombination") is True
        log.info(f"[AI-SOUND-CURATOR] Generated mix: {mix_name} with {len(recommended)} sounds (new combination: {is_new})")
        return {
            "success": True,
            "mixName": mix_name,
            "recommendedSounds": recommended,
            "volumeSettings": volume_settings,
            "explanation": explanation,
            "wellnessTip": _get_str(parsed, "wellnessTip"),
            "recommendedDuration": _get_int(parsed, "recommendedDuration", 15),
            "mixCategory": _get_str(parsed, "mixCategory"),
            "isNewCombination": is_new,
            "source": "Phi-4 AI",
        }

    # Startup check

    def check_server_status(self):
        """One-token request against the chat model; logs and returns whether it answered."""
        log.info(f"[AI STATUS] Checking LLM server at {config.LLM_BASE_URL} ...")
        started = time.monotonic()
        try:
            self._chat_completion_with_timeout(
                model=config.LLM_MODEL,
                messages=[{'role': 'user', 'content': 'Hello'}],
                timeout_s=config.LLM_HEALTHCHECK_TIMEOUT,
                max_tokens=1,
            )
        except Exception as e:
            log.warning(f"[AI STATUS] LLM server OFFLINE ({e}) - backup responses will be used")
            return False
        elapsed_ms = int((time.monotonic() - started) * 1000)
        log.info(f"[AI STATUS] LLM server ONLINE ({config.LLM_MODEL}, {elapsed_ms}ms)")
        return True

ai_service = AIService()
