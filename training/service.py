"""
Training Service
================

Request-level operations of the training pipeline:

    Profile Resolver -> Prompt Builder -> Generation Client -> Materializer

plus workout completion, on-demand workout analysis, race strategy and
explicit phase transitions. One instance per request; the store session
and the generation client are passed in. Store-only operations work
without a generation client.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from errors import NotFound, ValidationError, PersistenceFailure
from training.generator import PlanGenerator
from training.materializer import PlanMaterializer
from training.repository import TrainingRepository, profile_context
from training.schemas import (
    PHASES, PlanPreferences, WorkoutActuals,
    ParsedAnalysis, ParsedRaceStrategy
)

logger = logging.getLogger(__name__)

# Activities sent as race-strategy context
STRATEGY_HISTORY_LIMIT = 10


class TrainingService:

    def __init__(self, db: Session, generator: Optional[PlanGenerator] = None):
        self.db = db
        self.generator = generator
        self.repo = TrainingRepository(db)
        self.materializer = PlanMaterializer(db)

    # ============ Plan Generation ============

    def generate_plan(self, user_id: int, race_id: int, preferences: PlanPreferences) -> models.TrainingPlan:
        """
        Generate and persist a plan for a user and race.
        Two concurrent calls produce two independent plans.
        """
        profile, race = self.repo.resolve_plan_inputs(user_id, race_id)
        logger.info(f"Generating plan for user {user_id}, race {race_id} ({preferences.training_days} days/week)")

        parsed = self.generator.generate_plan(profile, race, preferences)
        return self.materializer.materialize(user_id, race_id, parsed)

    # ============ Plan Reads ============

    def list_plans(self, user_id: int) -> List[models.TrainingPlan]:
        return self.repo.list_plans(user_id)

    def get_plan(self, plan_id: int) -> models.TrainingPlan:
        return self.repo.get_plan(plan_id)

    def list_plan_workouts(self, plan_id: int) -> List[models.Workout]:
        return self.repo.get_plan_workouts(plan_id)

    def get_week_workouts(self, plan_id: int, week: int) -> List[models.Workout]:
        return self.repo.get_plan_workouts(plan_id, week=week)

    def delete_plan(self, plan_id: int) -> None:
        """Delete a plan together with its workouts."""
        plan = self.repo.get_plan(plan_id)
        try:
            self.db.delete(plan)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(details=str(e)) from e
        logger.info(f"Plan {plan_id} deleted")

    # ============ Phase Transitions ============

    def advance_phase(self, plan_id: int) -> models.TrainingPlan:
        """
        Move a plan to the next phase (base -> build -> peak -> taper).
        Nothing calls this on a schedule; it is an explicit operation.
        """
        plan = self.repo.get_plan(plan_id)
        index = PHASES.index(plan.phase)
        if index == len(PHASES) - 1:
            raise ValidationError(f"Plan is already in the final phase '{plan.phase}'")

        previous = plan.phase
        plan.phase = PHASES[index + 1]
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(details=str(e)) from e

        logger.info(f"Plan {plan_id} phase {previous} -> {plan.phase}")
        return plan

    # ============ Workout Completion ============

    def complete_workout(
        self,
        workout_id: int,
        actual_distance: Optional[float] = None,
        actual_pace: Optional[str] = None,
        actual_duration: Optional[str] = None,
        notes: Optional[str] = None
    ) -> models.Workout:
        """
        Record as-run metrics. Calling again overwrites the actuals;
        scheduled fields are never touched.
        """
        workout = self.repo.get_workout(workout_id)

        workout.completed = True
        workout.completed_at = datetime.utcnow()
        workout.actual_distance = actual_distance
        workout.actual_pace = actual_pace
        workout.actual_duration = actual_duration
        workout.notes = notes

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(details=str(e)) from e

        logger.info(f"Workout {workout_id} completed")
        return workout

    # ============ Analysis ============

    def analyze_workout(self, workout_id: int) -> ParsedAnalysis:
        """
        Ask the generation backend for feedback on a workout.
        The result is returned, not stored.
        """
        workout = self.repo.get_workout_with_owner(workout_id)
        user = workout.training_plan.user
        if not user.profile:
            raise NotFound("profile", user.id)

        actuals = WorkoutActuals(
            type=workout.workout_type,
            distance=workout.actual_distance,
            duration=workout.actual_duration,
            pace=workout.actual_pace,
            heart_rate=None,
            weather=None
        )
        recent = self.repo.recent_activities(user.id)

        logger.info(f"Analyzing workout {workout_id} with {len(recent)} recent activities")
        return self.generator.analyze_workout(actuals, profile_context(user.profile), recent)

    def generate_race_strategy(self, race_id: int, user_id: int) -> ParsedRaceStrategy:
        """Race-day strategy from the race, the runner profile and recent history."""
        profile, race = self.repo.resolve_plan_inputs(user_id, race_id)
        history = self.repo.recent_activities(user_id, limit=STRATEGY_HISTORY_LIMIT)
        return self.generator.generate_race_strategy(race, profile, history)
