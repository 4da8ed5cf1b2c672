"""
Generation Backend Clients
==========================

Provider-agnostic LLM interface.
GeminiClient talks to Google Gemini; MockLLMClient answers with
deterministic JSON and is selected with LLM_BACKEND=mock.
"""

import json
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Protocol, Optional, Dict, Any, List, Deque

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from config import Settings
from errors import GenerationUnavailable, GenerationMalformed

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    input_tokens: int
    output_tokens: int
    model: str
    metadata: Optional[Dict[str, Any]] = None


class LLMClient(Protocol):
    """
    Protocol for LLM clients.
    All implementations must provide generate() method.
    """

    model_name: str

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        ...


class GeminiClient:
    """Gemini LLM client implementation."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash", timeout: float = 30.0):
        self.api_key = api_key
        self.model_name = model
        self.timeout = timeout
        genai.configure(api_key=api_key)

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7
    ) -> LLMResponse:
        """
        Generate a JSON response using Gemini.

        Raises:
            GenerationUnavailable: transport error, API error or timeout
            GenerationMalformed: the response carried no text (blocked/empty)
        """
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_instruction
        )
        config = genai.GenerationConfig(
            max_output_tokens=max_tokens,
            temperature=temperature,
            response_mime_type="application/json"
        )

        try:
            response = model.generate_content(
                prompt,
                generation_config=config,
                request_options={"timeout": self.timeout, "retry": None}
            )
        except (google_exceptions.GoogleAPIError, TimeoutError, ConnectionError) as e:
            logger.warning(f"Gemini call failed ({type(e).__name__}): {e}")
            raise GenerationUnavailable(details=str(e)) from e

        # Handle blocked responses or empty candidates
        if not response.candidates or not response.candidates[0].content.parts:
            finish_reason = response.candidates[0].finish_reason if response.candidates else "UNKNOWN"
            logger.warning(f"Gemini returned no content (finish_reason={finish_reason})")
            raise GenerationMalformed(details=f"empty response, finish_reason={finish_reason}")

        # Extract token counts if available
        input_tokens = 0
        output_tokens = 0
        if hasattr(response, 'usage_metadata'):
            input_tokens = getattr(response.usage_metadata, 'prompt_token_count', 0)
            output_tokens = getattr(response.usage_metadata, 'candidates_token_count', 0)

        return LLMResponse(
            text=response.text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=self.model_name
        )


# ==============================================================================
# MOCK CLIENT
# ==============================================================================

_TRAINING_DAYS_RE = re.compile(r"^- Training Days: (\d+) days per week$", re.MULTILINE)

# Preferred weekday spread when picking N training days
_DAY_PICK_ORDER = ["Tuesday", "Thursday", "Sunday", "Saturday", "Monday", "Wednesday", "Friday"]
_WEEK_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

MOCK_PHASE_WEEKS = {"base": 4, "build": 4, "peak": 2, "taper": 2}

# Calls kept for inspection; the client may live for the whole process
MOCK_CALL_HISTORY = 50


def build_mock_plan(training_days: int) -> Dict[str, Any]:
    """Deterministic plan payload with `training_days` workouts per week."""
    days = sorted(_DAY_PICK_ORDER[:training_days], key=_WEEK_ORDER.index)
    total_weeks = sum(MOCK_PHASE_WEEKS.values())

    phase_by_week: List[str] = []
    for phase, weeks in MOCK_PHASE_WEEKS.items():
        phase_by_week.extend([phase] * weeks)

    weekly_plans = []
    for week_number, phase in enumerate(phase_by_week, start=1):
        workouts = []
        for index, day in enumerate(days):
            if index == len(days) - 1 and len(days) > 1:
                workout_type, distance, pace = "long", 6.0 + week_number * 0.5, "10:00/mi"
            elif index == 1 and phase in ("build", "peak"):
                workout_type, distance, pace = "tempo", 5.0, "8:30/mi"
            else:
                workout_type, distance, pace = "easy", 4.0, "9:45/mi"
            workouts.append({
                "day": day,
                "type": workout_type,
                "distance": distance,
                "pace": pace,
                "description": f"{workout_type.capitalize()} run, week {week_number}",
                "segments": [{"type": "main", "distance": distance, "pace": pace}]
            })
        weekly_plans.append({
            "week": week_number,
            "phase": phase,
            "totalMileage": sum(w["distance"] for w in workouts),
            "workouts": workouts
        })

    return {
        "planOverview": {
            "totalWeeks": total_weeks,
            "phases": {
                phase: {"weeks": weeks, "description": f"{phase.capitalize()} phase"}
                for phase, weeks in MOCK_PHASE_WEEKS.items()
            }
        },
        "weeklyPlans": weekly_plans
    }


MOCK_ANALYSIS = {
    "analysis": {
        "performance": "good",
        "paceAnalysis": "Pace was steady and close to the planned target.",
        "effortLevel": "moderate",
        "recommendations": ["Keep easy days easy", "Add strides after one easy run"]
    },
    "insights": {
        "trends": "Weekly volume is consistent.",
        "improvements": "Pacing control has improved over recent runs.",
        "nextSteps": "Recover well before the next quality session."
    },
    "motivation": {
        "message": "Solid work, keep stacking consistent weeks.",
        "achievements": ["Workout completed as planned"]
    }
}

MOCK_RACE_STRATEGY = {
    "strategy": {
        "pacing": {
            "startPace": "Slightly slower than goal pace",
            "targetPace": "Goal pace",
            "finishPace": "Push when the last mile starts",
            "notes": "Negative split."
        },
        "nutrition": {
            "preRace": "Familiar carbohydrate-rich breakfast 3 hours before.",
            "duringRace": "Gel every 40 minutes.",
            "hydration": "Sip at every aid station."
        },
        "mental": {
            "keyPoints": ["Stay patient early", "Break the race into segments"],
            "motivation": "You have done the work."
        }
    },
    "courseStrategy": {
        "hills": "Hold effort, not pace, on climbs.",
        "weather": "Adjust pace for heat.",
        "crowds": "Use the crowd energy in the final stretch."
    }
}


class MockLLMClient:
    """
    Mock LLM client for testing and LLM_BACKEND=mock.

    Without queued `responses` it answers with canned JSON chosen from
    the schema embedded in the prompt. Set `error` to make every call raise.
    """

    def __init__(self, responses: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.model_name = "mock"
        self.responses = list(responses or [])
        self.error = error
        self.last_prompt: Optional[str] = None
        self.last_system_instruction: Optional[str] = None
        self.calls: Deque[Dict[str, Any]] = deque(maxlen=MOCK_CALL_HISTORY)

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7
    ) -> LLMResponse:
        """Return mock response."""
        self.last_prompt = prompt
        self.last_system_instruction = system_instruction
        self.calls.append({"max_tokens": max_tokens, "temperature": temperature})

        if self.error is not None:
            raise self.error

        if self.responses:
            text = self.responses.pop(0)
        elif '"planOverview"' in prompt:
            match = _TRAINING_DAYS_RE.search(prompt)
            training_days = int(match.group(1)) if match else 4
            text = json.dumps(build_mock_plan(training_days))
        elif '"paceAnalysis"' in prompt:
            text = json.dumps(MOCK_ANALYSIS)
        elif '"courseStrategy"' in prompt:
            text = json.dumps(MOCK_RACE_STRATEGY)
        else:
            text = "{}"

        return LLMResponse(
            text=text,
            input_tokens=len(prompt) // 4,
            output_tokens=len(text) // 4,
            model="mock"
        )


def create_llm_client() -> LLMClient:
    """Build the client selected by configuration."""
    if Settings.LLM_BACKEND == "mock":
        logger.info("Using mock generation backend")
        return MockLLMClient()
    if not Settings.GEMINI_API_KEY:
        raise GenerationUnavailable(details="GEMINI_API_KEY is not configured")
    return GeminiClient(
        api_key=Settings.GEMINI_API_KEY,
        model=Settings.GEMINI_MODEL,
        timeout=Settings.LLM_TIMEOUT_SECONDS
    )
