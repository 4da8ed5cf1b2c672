"""
FastAPI Router for Training Plans
Endpoints for plan generation, plan/workout reads, workout completion
and AI analysis.
"""
from functools import lru_cache
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from training.generator import PlanGenerator
from training.llm_client import LLMClient, create_llm_client
from training.service import TrainingService
from training.schemas import (
    GeneratePlanRequest, GeneratePlanResponse,
    PlanResponse, PlanListResponse, WorkoutListResponse,
    CompleteWorkoutRequest, CompleteWorkoutResponse,
    AnalyzeWorkoutRequest, AnalysisResponse,
    RaceStrategyRequest, RaceStrategyResponse,
)


router = APIRouter(prefix="/training", tags=["training"])


@lru_cache(maxsize=1)
def get_llm_client() -> LLMClient:
    """One generation client per process, chosen by LLM_BACKEND."""
    return create_llm_client()


def get_generator() -> PlanGenerator:
    return PlanGenerator(get_llm_client())


def get_training_service(db: Session = Depends(get_db)) -> TrainingService:
    """Store-only operations; no generation client is built."""
    return TrainingService(db)


def get_generating_service(
    db: Session = Depends(get_db),
    generator: PlanGenerator = Depends(get_generator)
) -> TrainingService:
    return TrainingService(db, generator)


# ============ Plan Generation ============

@router.post("/plans/generate", response_model=GeneratePlanResponse)
def generate_plan(
    request: GeneratePlanRequest,
    service: TrainingService = Depends(get_generating_service)
):
    """
    Generate a training plan with the AI coach and persist it.
    """
    plan = service.generate_plan(request.user_id, request.race_id, request.preferences)
    return GeneratePlanResponse(
        success=True,
        plan=plan,
        message="Training plan generated successfully!"
    )


# ============ Plans ============

@router.get("/plans", response_model=PlanListResponse)
def get_plans(
    user_id: int = Query(..., alias="userId"),
    service: TrainingService = Depends(get_training_service)
):
    """
    List a user's plans with race and ordered workouts.
    """
    return PlanListResponse(plans=service.list_plans(user_id))


@router.get("/plans/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: int, service: TrainingService = Depends(get_training_service)):
    return PlanResponse(plan=service.get_plan(plan_id))


@router.delete("/plans/{plan_id}")
def delete_plan(plan_id: int, service: TrainingService = Depends(get_training_service)):
    service.delete_plan(plan_id)
    return {"success": True, "message": "Training plan deleted", "id": plan_id}


@router.post("/plans/{plan_id}/phase/advance", response_model=PlanResponse)
def advance_phase(plan_id: int, service: TrainingService = Depends(get_training_service)):
    """
    Move the plan to its next phase.
    """
    return PlanResponse(plan=service.advance_phase(plan_id))


# ============ Workouts ============

@router.get("/plans/{plan_id}/workouts", response_model=WorkoutListResponse)
def get_plan_workouts(plan_id: int, service: TrainingService = Depends(get_training_service)):
    return WorkoutListResponse(workouts=service.list_plan_workouts(plan_id))


@router.get("/plans/{plan_id}/workouts/{week}", response_model=WorkoutListResponse)
def get_week_workouts(plan_id: int, week: int, service: TrainingService = Depends(get_training_service)):
    """
    Workouts of one week, in the order they were generated.
    """
    return WorkoutListResponse(workouts=service.get_week_workouts(plan_id, week))


@router.put("/workouts/{workout_id}/complete", response_model=CompleteWorkoutResponse)
def complete_workout(
    workout_id: int,
    request: CompleteWorkoutRequest,
    service: TrainingService = Depends(get_training_service)
):
    """
    Mark a workout as completed with its actual metrics.
    """
    workout = service.complete_workout(
        workout_id,
        actual_distance=request.actual_distance,
        actual_pace=request.actual_pace,
        actual_duration=request.actual_duration,
        notes=request.notes
    )
    return CompleteWorkoutResponse(
        success=True,
        workout=workout,
        message="Workout completed! Great job!"
    )


# ============ AI Analysis ============

@router.post("/workouts/analyze", response_model=AnalysisResponse)
def analyze_workout(
    request: AnalyzeWorkoutRequest,
    service: TrainingService = Depends(get_generating_service)
):
    """
    Analyze a completed workout using recent activities as context.
    """
    return AnalysisResponse(analysis=service.analyze_workout(request.workout_id))


@router.post("/races/{race_id}/strategy", response_model=RaceStrategyResponse)
def race_strategy(
    race_id: int,
    request: RaceStrategyRequest,
    service: TrainingService = Depends(get_generating_service)
):
    """
    Generate a race-day strategy for a runner.
    """
    return RaceStrategyResponse(strategy=service.generate_race_strategy(race_id, request.user_id))
