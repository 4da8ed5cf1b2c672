"""
Pydantic Schemas for Training Plans
Request/response models, prompt context snapshots and the structured
shapes the generation backend must return.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime, date


PHASES = ("base", "build", "peak", "taper")


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============ Prompt Context (inputs to the Prompt Builder) ============

class ProfileContext(CamelModel):
    """Runner profile snapshot used as generation input."""
    experience: Optional[str] = None
    current_pace: Optional[str] = None
    target_pace: Optional[str] = None
    weekly_mileage: Optional[float] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    injury_history: Optional[str] = None
    preferred_days: Optional[int] = None
    preferred_time: Optional[str] = None


class RaceContext(CamelModel):
    """Target race snapshot."""
    name: Optional[str] = None
    distance: str
    date: date
    goal_time: Optional[str] = None
    course_type: Optional[str] = None
    elevation_gain: Optional[float] = None
    weather_notes: Optional[str] = None


class PlanPreferences(CamelModel):
    """Per-request plan preferences."""
    training_days: int = Field(..., ge=1, le=7)
    preferred_time: Optional[str] = None
    injury_history: Optional[str] = None


class WorkoutActuals(CamelModel):
    """As-run metrics of a completed workout."""
    type: str
    distance: Optional[float] = None
    duration: Optional[str] = None
    pace: Optional[str] = None
    heart_rate: Optional[Dict[str, Any]] = None
    weather: Optional[Dict[str, Any]] = None


class ActivityContext(CamelModel):
    """One historical run used as analysis context."""
    date: datetime
    activity_type: Optional[str] = None
    distance: Optional[float] = None
    duration: Optional[str] = None
    pace: Optional[str] = None
    average_hr: Optional[int] = None


# ============ Generated Plan ============

class PhaseSpec(CamelModel):
    weeks: int = Field(..., ge=0)
    description: str = ""


class PlanPhases(CamelModel):
    base: PhaseSpec
    build: PhaseSpec
    peak: PhaseSpec
    taper: PhaseSpec

    def total_weeks(self) -> int:
        return sum(getattr(self, name).weeks for name in PHASES)


class PlanOverview(CamelModel):
    total_weeks: int = Field(..., ge=1)
    phases: PlanPhases


class WorkoutSegment(CamelModel):
    type: str
    distance: Optional[float] = None
    pace: Optional[str] = None


class PlannedWorkout(CamelModel):
    day: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    distance: Optional[float] = Field(default=None, ge=0)
    pace: Optional[str] = None
    description: str = ""
    segments: List[WorkoutSegment] = Field(default_factory=list)

    @property
    def is_rest(self) -> bool:
        return self.type.strip().lower() == "rest"


class WeekPlan(CamelModel):
    week: int = Field(..., ge=1)
    phase: str
    total_mileage: Optional[float] = None
    workouts: List[PlannedWorkout] = Field(default_factory=list)

    @field_validator("phase")
    @classmethod
    def _known_phase(cls, value: str) -> str:
        phase = value.strip().lower()
        if phase not in PHASES:
            raise ValueError(f"unknown phase '{value}'")
        return phase

    @property
    def training_workouts(self) -> List[PlannedWorkout]:
        """Workouts that get materialized (rest entries excluded)."""
        return [w for w in self.workouts if not w.is_rest]


class ParsedPlan(CamelModel):
    """
    Validated plan as returned by the generation backend.
    Invariants: totalWeeks equals the sum of the phase weeks, weeks are
    numbered 1..totalWeeks in order, (week, day) is unique.
    """
    plan_overview: PlanOverview
    weekly_plans: List[WeekPlan]

    @model_validator(mode="after")
    def _consistent(self) -> "ParsedPlan":
        total = self.plan_overview.total_weeks
        phase_sum = self.plan_overview.phases.total_weeks()
        if phase_sum != total:
            raise ValueError(f"totalWeeks is {total} but phases add up to {phase_sum}")

        numbers = [w.week for w in self.weekly_plans]
        if numbers != list(range(1, total + 1)):
            raise ValueError(f"weeklyPlans must be weeks 1..{total} in order, got {numbers}")

        for week in self.weekly_plans:
            seen = set()
            for workout in week.workouts:
                key = workout.day.strip().lower()
                if key in seen:
                    raise ValueError(f"week {week.week} has more than one workout on {workout.day}")
                seen.add(key)
        return self

    @property
    def total_weeks(self) -> int:
        return self.plan_overview.total_weeks

    def weeks_not_matching(self, training_days: int) -> List[int]:
        """Week numbers whose non-rest workout count differs from training_days."""
        return [
            w.week for w in self.weekly_plans
            if len(w.training_workouts) != training_days
        ]


# ============ Workout Analysis ============

class WorkoutAssessment(CamelModel):
    performance: str
    pace_analysis: str
    effort_level: str
    recommendations: List[str] = Field(default_factory=list)


class AnalysisInsights(CamelModel):
    trends: str
    improvements: str
    next_steps: str


class AnalysisMotivation(CamelModel):
    message: str
    achievements: List[str] = Field(default_factory=list)


class ParsedAnalysis(CamelModel):
    analysis: WorkoutAssessment
    insights: AnalysisInsights
    motivation: AnalysisMotivation


# ============ Race Strategy ============

class PacingStrategy(CamelModel):
    start_pace: str
    target_pace: str
    finish_pace: str
    notes: str = ""


class NutritionStrategy(CamelModel):
    pre_race: str
    during_race: str
    hydration: str


class MentalStrategy(CamelModel):
    key_points: List[str] = Field(default_factory=list)
    motivation: str = ""


class StrategyBody(CamelModel):
    pacing: PacingStrategy
    nutrition: NutritionStrategy
    mental: MentalStrategy


class CourseStrategy(CamelModel):
    hills: str
    weather: str
    crowds: str


class ParsedRaceStrategy(CamelModel):
    strategy: StrategyBody
    course_strategy: CourseStrategy


# ============ Request Schemas ============

class GeneratePlanRequest(CamelModel):
    user_id: int
    race_id: int
    preferences: PlanPreferences


class CompleteWorkoutRequest(CamelModel):
    actual_distance: Optional[float] = Field(default=None, ge=0)
    actual_pace: Optional[str] = None
    actual_duration: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class AnalyzeWorkoutRequest(CamelModel):
    workout_id: int


class RaceStrategyRequest(CamelModel):
    user_id: int


# ============ Response Schemas ============

class RaceOut(CamelModel):
    id: int
    name: Optional[str] = None
    distance: str
    date: date
    goal_time: Optional[str] = None
    course_type: Optional[str] = None
    elevation_gain: Optional[float] = None
    weather_notes: Optional[str] = None


class WorkoutOut(CamelModel):
    id: int
    training_plan_id: int
    week_number: int
    day_of_week: str
    sequence: int
    workout_type: str
    distance: Optional[float] = None
    pace: Optional[str] = None
    description: Optional[str] = None
    segments: List[Dict[str, Any]] = Field(default_factory=list)
    completed: bool = False
    completed_at: Optional[datetime] = None
    actual_distance: Optional[float] = None
    actual_pace: Optional[str] = None
    actual_duration: Optional[str] = None
    notes: Optional[str] = None


class PlanOut(CamelModel):
    id: int
    user_id: int
    race_id: int
    start_date: date
    race_date: date
    total_weeks: int
    phase: str
    plan_data: Dict[str, Any]
    created_at: Optional[datetime] = None
    race: Optional[RaceOut] = None
    workouts: List[WorkoutOut] = Field(default_factory=list)


class GeneratePlanResponse(CamelModel):
    success: bool
    plan: PlanOut
    message: str


class PlanResponse(CamelModel):
    plan: PlanOut


class PlanListResponse(CamelModel):
    plans: List[PlanOut]


class WorkoutListResponse(CamelModel):
    workouts: List[WorkoutOut]


class CompleteWorkoutResponse(CamelModel):
    success: bool
    workout: WorkoutOut
    message: str


class AnalysisResponse(CamelModel):
    analysis: ParsedAnalysis


class RaceStrategyResponse(CamelModel):
    strategy: ParsedRaceStrategy
