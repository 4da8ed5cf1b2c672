"""
Plan Materializer
=================

Expands a generated plan into one TrainingPlan row plus one Workout row
per scheduled session, in a single transaction.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from errors import PersistenceFailure
from training.repository import TrainingRepository
from training.schemas import ParsedPlan

logger = logging.getLogger(__name__)

INITIAL_PHASE = "base"


class PlanMaterializer:
    """
    Persists generated plans.

    Workouts are written in the order the plan lists them; `sequence`
    records that order so reads can sort by (week, sequence). Rest
    entries are not stored.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = TrainingRepository(db)

    def materialize(
        self,
        user_id: int,
        race_id: int,
        parsed: ParsedPlan,
        start_date: Optional[date] = None
    ) -> models.TrainingPlan:
        """
        Create the plan and its workouts atomically.

        Raises:
            NotFound: race does not exist
            PersistenceFailure: any store error; nothing is left behind
        """
        race = self.repo.get_race(race_id)

        plan = models.TrainingPlan(
            user_id=user_id,
            race_id=race_id,
            start_date=start_date or date.today(),
            race_date=race.date,
            total_weeks=parsed.total_weeks,
            phase=INITIAL_PHASE,
            plan_data=parsed.model_dump(mode="json", by_alias=True)
        )

        sequence = 0
        for week in parsed.weekly_plans:
            for workout in week.training_workouts:
                plan.workouts.append(models.Workout(
                    week_number=week.week,
                    day_of_week=workout.day,
                    sequence=sequence,
                    workout_type=workout.type,
                    distance=workout.distance,
                    pace=workout.pace,
                    description=workout.description,
                    segments=[s.model_dump(mode="json") for s in workout.segments]
                ))
                sequence += 1

        try:
            self.db.add(plan)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Plan materialization failed for user {user_id}, race {race_id}: {e}")
            raise PersistenceFailure(details=str(e)) from e

        logger.info(f"Plan {plan.id} materialized: {plan.total_weeks} weeks, {sequence} workouts")
        return self.repo.get_plan(plan.id)
