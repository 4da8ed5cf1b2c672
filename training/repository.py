"""
Repository Layer for Training Plans
Store reads for the generation pipeline: profile/race resolution,
workout context and plan queries.
"""
from sqlalchemy.orm import Session, joinedload, selectinload
from typing import Optional, List, Tuple

import models
from errors import NotFound
from training.schemas import ProfileContext, RaceContext, ActivityContext

# Activities sent as analysis context
RECENT_ACTIVITY_LIMIT = 5


def profile_context(profile: models.Profile) -> ProfileContext:
    return ProfileContext.model_validate(profile)


def race_context(race: models.Race) -> RaceContext:
    return RaceContext.model_validate(race)


class TrainingRepository:
    """
    Repository for training data access.
    Lookups that the pipeline depends on raise NotFound instead of returning None.
    """

    def __init__(self, db: Session):
        self.db = db

    # ============ Profile Resolver ============

    def get_user(self, user_id: int) -> models.User:
        user = self.db.query(models.User).options(
            joinedload(models.User.profile)
        ).filter(models.User.id == user_id).first()
        if not user:
            raise NotFound("user", user_id)
        return user

    def get_race(self, race_id: int) -> models.Race:
        race = self.db.query(models.Race).filter(models.Race.id == race_id).first()
        if not race:
            raise NotFound("race", race_id)
        return race

    def get_profile(self, user_id: int) -> models.Profile:
        user = self.get_user(user_id)
        if not user.profile:
            raise NotFound("profile", user_id)
        return user.profile

    def resolve_plan_inputs(self, user_id: int, race_id: int) -> Tuple[ProfileContext, RaceContext]:
        """
        Load the runner profile and the target race.
        Fails fast with NotFound when either is absent.
        """
        profile = self.get_profile(user_id)
        race = self.get_race(race_id)
        return profile_context(profile), race_context(race)

    # ============ Activities ============

    def recent_activities(self, user_id: int, limit: int = RECENT_ACTIVITY_LIMIT) -> List[ActivityContext]:
        """Most recently dated activities first."""
        activities = self.db.query(models.Activity).filter(
            models.Activity.user_id == user_id
        ).order_by(models.Activity.date.desc(), models.Activity.id.desc()).limit(limit).all()
        return [ActivityContext.model_validate(a) for a in activities]

    # ============ Plans ============

    def _plan_query(self):
        return self.db.query(models.TrainingPlan).options(
            joinedload(models.TrainingPlan.race),
            selectinload(models.TrainingPlan.workouts)
        )

    def get_plan(self, plan_id: int) -> models.TrainingPlan:
        plan = self._plan_query().filter(models.TrainingPlan.id == plan_id).first()
        if not plan:
            raise NotFound("plan", plan_id)
        return plan

    def list_plans(self, user_id: int) -> List[models.TrainingPlan]:
        return self._plan_query().filter(
            models.TrainingPlan.user_id == user_id
        ).order_by(models.TrainingPlan.created_at.desc(), models.TrainingPlan.id.desc()).all()

    # ============ Workouts ============

    def get_workout(self, workout_id: int) -> models.Workout:
        workout = self.db.query(models.Workout).filter(models.Workout.id == workout_id).first()
        if not workout:
            raise NotFound("workout", workout_id)
        return workout

    def get_workout_with_owner(self, workout_id: int) -> models.Workout:
        """Workout together with its plan, the owning user and the user's profile."""
        workout = self.db.query(models.Workout).options(
            joinedload(models.Workout.training_plan)
            .joinedload(models.TrainingPlan.user)
            .joinedload(models.User.profile)
        ).filter(models.Workout.id == workout_id).first()
        if not workout:
            raise NotFound("workout", workout_id)
        return workout

    def get_plan_workouts(self, plan_id: int, week: Optional[int] = None) -> List[models.Workout]:
        """Workouts of a plan in (week, generation order)."""
        self.get_plan(plan_id)
        query = self.db.query(models.Workout).filter(models.Workout.training_plan_id == plan_id)
        if week is not None:
            query = query.filter(models.Workout.week_number == week)
        return query.order_by(models.Workout.week_number.asc(), models.Workout.sequence.asc()).all()
