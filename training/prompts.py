"""
Prompt Builder for Training Plans
=================================

Pure functions that render the instruction documents sent to the
generation backend. Same inputs always give byte-identical text; the
current date is passed in, never read from the clock here.

Each template embeds the exact JSON shape the backend must answer with,
because the backend has no enforced output contract.
"""

import json
from datetime import date
from typing import Any, Iterable, Optional

from training.schemas import (
    ProfileContext, RaceContext, PlanPreferences,
    WorkoutActuals, ActivityContext
)


# ==============================================================================
# SYSTEM INSTRUCTIONS
# ==============================================================================

PLAN_SYSTEM_INSTRUCTION = (
    "You are an expert running coach with 20+ years of experience. "
    "Generate detailed, personalized training plans that are safe, progressive, and effective. "
    "Answer with JSON only."
)

ANALYSIS_SYSTEM_INSTRUCTION = (
    "You are a supportive running coach. "
    "Analyze workouts and provide encouraging, actionable feedback. "
    "Answer with JSON only."
)

RACE_STRATEGY_SYSTEM_INSTRUCTION = (
    "You are an expert race strategist. "
    "Create detailed, personalized race plans that maximize performance while staying safe. "
    "Answer with JSON only."
)


# ==============================================================================
# RESPONSE SCHEMAS (embedded verbatim in the prompts)
# ==============================================================================

PLAN_RESPONSE_SCHEMA = """{
  "planOverview": {
    "totalWeeks": number,
    "phases": {
      "base": { "weeks": number, "description": "string" },
      "build": { "weeks": number, "description": "string" },
      "peak": { "weeks": number, "description": "string" },
      "taper": { "weeks": number, "description": "string" }
    }
  },
  "weeklyPlans": [
    {
      "week": number,
      "phase": "base" | "build" | "peak" | "taper",
      "totalMileage": number,
      "workouts": [
        {
          "day": "string",
          "type": "string",
          "distance": number,
          "pace": "string",
          "description": "string",
          "segments": [
            {
              "type": "string",
              "distance": number,
              "pace": "string"
            }
          ]
        }
      ]
    }
  ]
}"""

ANALYSIS_RESPONSE_SCHEMA = """{
  "analysis": {
    "performance": "string (excellent/good/fair/needs improvement)",
    "paceAnalysis": "string",
    "effortLevel": "string",
    "recommendations": ["string", "string"]
  },
  "insights": {
    "trends": "string",
    "improvements": "string",
    "nextSteps": "string"
  },
  "motivation": {
    "message": "string",
    "achievements": ["string"]
  }
}"""

RACE_STRATEGY_RESPONSE_SCHEMA = """{
  "strategy": {
    "pacing": {
      "startPace": "string",
      "targetPace": "string",
      "finishPace": "string",
      "notes": "string"
    },
    "nutrition": {
      "preRace": "string",
      "duringRace": "string",
      "hydration": "string"
    },
    "mental": {
      "keyPoints": ["string"],
      "motivation": "string"
    }
  },
  "courseStrategy": {
    "hills": "string",
    "weather": "string",
    "crowds": "string"
  }
}"""


# ==============================================================================
# HELPERS
# ==============================================================================

def _fmt(value: Any) -> str:
    """Render a field value for a prompt line."""
    if value is None or value == "":
        return "N/A"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def _format_activity(activity: ActivityContext) -> str:
    return (
        f"- {activity.date.date().isoformat()}: {_fmt(activity.activity_type)}, "
        f"{_fmt(activity.distance)} miles, duration {_fmt(activity.duration)}, "
        f"pace {_fmt(activity.pace)}, avg HR {_fmt(activity.average_hr)}"
    )


# ==============================================================================
# PLAN PROMPT
# ==============================================================================

def build_plan_prompt(
    profile: ProfileContext,
    race: RaceContext,
    preferences: PlanPreferences,
    as_of: date
) -> str:
    """
    Render the plan-generation instructions.

    Preference fields win over the stored profile for injury history and
    preferred time; both values are shown so nothing is lost.
    """
    days = preferences.training_days
    lines = [
        "You are an expert running coach. Generate a detailed training plan for a runner.",
        "",
        "RUNNER PROFILE:",
        f"- Experience: {_fmt(profile.experience)}",
        f"- Current Pace: {_fmt(profile.current_pace)}",
        f"- Target Pace: {_fmt(profile.target_pace)}",
        f"- Weekly Mileage: {_fmt(profile.weekly_mileage)} miles",
        f"- Age: {_fmt(profile.age)}",
        f"- Gender: {_fmt(profile.gender)}",
        f"- Injury History (profile): {_fmt(profile.injury_history)}",
        f"- Usual Training Days: {_fmt(profile.preferred_days)}",
        f"- Usual Training Time: {_fmt(profile.preferred_time)}",
        "",
        "RACE INFO:",
        f"- Name: {_fmt(race.name)}",
        f"- Distance: {_fmt(race.distance)}",
        f"- Date: {_fmt(race.date)}",
        f"- Goal Time: {_fmt(race.goal_time)}",
        f"- Course Type: {_fmt(race.course_type)}",
        f"- Elevation Gain: {_fmt(race.elevation_gain)} feet",
        f"- Weather Notes: {_fmt(race.weather_notes)}",
        f"- Current Date: {as_of.isoformat()}",
        "",
        "PREFERENCES:",
        f"- Training Days: {days} days per week",
        f"- Preferred Time: {_fmt(preferences.preferred_time)}",
        f"- Injury History: {_fmt(preferences.injury_history)}",
        "",
        "RULES:",
        "- Split the plan into the four phases base, build, peak and taper.",
        "- planOverview.totalWeeks must equal the sum of the four phase week counts.",
        "- weeklyPlans must contain exactly totalWeeks entries, numbered from 1 in order.",
        f"- Every week lists exactly {days} workouts, one per training day, each on a different day.",
        "- Do not list rest days; days without a workout are rest days.",
        "- Use full English weekday names for \"day\" (Monday ... Sunday).",
        "- Distances are in miles, paces in min/mile.",
        "",
        "Generate a JSON response with this structure:",
        PLAN_RESPONSE_SCHEMA,
        "",
        "Make the plan realistic, progressive, and personalized to their current fitness level.",
    ]
    return "\n".join(lines)


# ==============================================================================
# ANALYSIS PROMPT
# ==============================================================================

def build_analysis_prompt(
    workout: WorkoutActuals,
    profile: ProfileContext,
    recent_activities: Iterable[ActivityContext]
) -> str:
    """Render the workout-analysis instructions."""
    lines = [
        "Analyze this completed workout and provide insights:",
        "",
        "WORKOUT DATA:",
        f"- Type: {_fmt(workout.type)}",
        f"- Distance: {_fmt(workout.distance)} miles",
        f"- Duration: {_fmt(workout.duration)}",
        f"- Pace: {_fmt(workout.pace)}",
        f"- Heart Rate: {_fmt(workout.heart_rate)}",
        f"- Weather: {_fmt(workout.weather)}",
        "",
        "USER PROFILE:",
        f"- Experience: {_fmt(profile.experience)}",
        f"- Current Pace: {_fmt(profile.current_pace)}",
        f"- Goal Pace: {_fmt(profile.target_pace)}",
        f"- Weekly Mileage: {_fmt(profile.weekly_mileage)}",
        "",
        "RECENT ACTIVITIES (most recent first):",
    ]
    activity_lines = [_format_activity(a) for a in recent_activities]
    lines.extend(activity_lines or ["- none recorded"])
    lines += [
        "",
        "Provide a JSON response with:",
        ANALYSIS_RESPONSE_SCHEMA,
    ]
    return "\n".join(lines)


# ==============================================================================
# RACE STRATEGY PROMPT
# ==============================================================================

def build_race_strategy_prompt(
    race: RaceContext,
    profile: ProfileContext,
    history: Iterable[ActivityContext],
    goal_time: Optional[str] = None
) -> str:
    """Render the race-strategy instructions."""
    lines = [
        "Generate a race strategy for this runner:",
        "",
        "RACE INFO:",
        f"- Name: {_fmt(race.name)}",
        f"- Distance: {_fmt(race.distance)}",
        f"- Date: {_fmt(race.date)}",
        f"- Course: {_fmt(race.course_type)}",
        f"- Elevation: {_fmt(race.elevation_gain)} feet",
        f"- Weather: {_fmt(race.weather_notes)}",
        "",
        "RUNNER PROFILE:",
        f"- Goal Time: {_fmt(goal_time or race.goal_time)}",
        f"- Current Fitness: {_fmt(profile.experience)}",
        f"- Current Pace: {_fmt(profile.current_pace)}",
        f"- Weekly Mileage: {_fmt(profile.weekly_mileage)} miles",
        "- Training History:",
    ]
    history_lines = [_format_activity(a) for a in history]
    lines.extend(history_lines or ["- none recorded"])
    lines += [
        "",
        "Provide a JSON response with:",
        RACE_STRATEGY_RESPONSE_SCHEMA,
    ]
    return "\n".join(lines)
