"""
Plan Generation Client
======================

Builds prompts, calls the generation backend and parses the answer into
validated pydantic models. No persistence and no retries: callers decide
whether a GenerationUnavailable is worth retrying.
"""

import json
import logging
from datetime import date
from typing import Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from errors import GenerationMalformed
from training.llm_client import LLMClient
from training.prompts import (
    build_plan_prompt, build_analysis_prompt, build_race_strategy_prompt,
    PLAN_SYSTEM_INSTRUCTION, ANALYSIS_SYSTEM_INSTRUCTION, RACE_STRATEGY_SYSTEM_INSTRUCTION
)
from training.schemas import (
    ProfileContext, RaceContext, PlanPreferences, WorkoutActuals, ActivityContext,
    ParsedPlan, ParsedAnalysis, ParsedRaceStrategy
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Sampling settings per call kind: (temperature, max output tokens)
PLAN_SAMPLING = (0.7, 4000)
ANALYSIS_SAMPLING = (0.8, 1000)
RACE_STRATEGY_SAMPLING = (0.6, 2000)


def extract_json(text: str) -> dict:
    """
    Parse the JSON object in a model answer.
    Tolerates a surrounding markdown code fence.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    cleaned = cleaned.strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationMalformed(details=f"response is not valid JSON: {e.msg} at position {e.pos}") from e

    if not isinstance(data, dict):
        raise GenerationMalformed(details="response JSON is not an object")
    return data


def parse_response(text: str, model: Type[ModelT]) -> ModelT:
    """Parse and validate a model answer against `model`."""
    data = extract_json(text)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise GenerationMalformed(details=errors) from e


class PlanGenerator:
    """
    Generation client for plans, workout analyses and race strategies.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def generate_plan(
        self,
        profile: ProfileContext,
        race: RaceContext,
        preferences: PlanPreferences,
        as_of: Optional[date] = None
    ) -> ParsedPlan:
        """
        Generate a multi-week plan.

        Raises:
            GenerationUnavailable: backend unreachable or timed out
            GenerationMalformed: answer does not match the plan schema, or a
                week does not carry exactly `training_days` workouts
        """
        as_of = as_of or date.today()
        prompt = build_plan_prompt(profile, race, preferences, as_of)
        temperature, max_tokens = PLAN_SAMPLING

        response = self.llm.generate(
            prompt,
            system_instruction=PLAN_SYSTEM_INSTRUCTION,
            max_tokens=max_tokens,
            temperature=temperature
        )
        logger.info(
            f"Plan generated by {response.model} "
            f"(in={response.input_tokens}, out={response.output_tokens} tokens)"
        )

        plan = parse_response(response.text, ParsedPlan)

        bad_weeks = plan.weeks_not_matching(preferences.training_days)
        if bad_weeks:
            raise GenerationMalformed(
                details=f"weeks {bad_weeks} do not have {preferences.training_days} training workouts"
            )
        return plan

    def analyze_workout(
        self,
        workout: WorkoutActuals,
        profile: ProfileContext,
        recent_activities: Iterable[ActivityContext]
    ) -> ParsedAnalysis:
        """Generate structured feedback for a completed workout."""
        prompt = build_analysis_prompt(workout, profile, recent_activities)
        temperature, max_tokens = ANALYSIS_SAMPLING

        response = self.llm.generate(
            prompt,
            system_instruction=ANALYSIS_SYSTEM_INSTRUCTION,
            max_tokens=max_tokens,
            temperature=temperature
        )
        return parse_response(response.text, ParsedAnalysis)

    def generate_race_strategy(
        self,
        race: RaceContext,
        profile: ProfileContext,
        history: Iterable[ActivityContext]
    ) -> ParsedRaceStrategy:
        """Generate a pacing, nutrition and mental plan for race day."""
        prompt = build_race_strategy_prompt(race, profile, history)
        temperature, max_tokens = RACE_STRATEGY_SAMPLING

        response = self.llm.generate(
            prompt,
            system_instruction=RACE_STRATEGY_SYSTEM_INSTRUCTION,
            max_tokens=max_tokens,
            temperature=temperature
        )
        return parse_response(response.text, ParsedRaceStrategy)
