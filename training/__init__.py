"""
Training - AI-assisted training plans
=====================================

Plan generation and workout analysis on top of a text-generation backend:

    Profile Resolver -> Prompt Builder -> Generation Client -> Plan Materializer

Key Design Principles:
1. Prompts are deterministic - the current date is an input
2. Every backend answer is validated before anything is stored
3. A plan and its workouts are written in one transaction
4. Rest days are not stored as workouts
"""

from training.generator import PlanGenerator
from training.llm_client import LLMClient, GeminiClient, MockLLMClient
from training.materializer import PlanMaterializer
from training.repository import TrainingRepository
from training.service import TrainingService

__all__ = [
    'PlanGenerator',
    'LLMClient',
    'GeminiClient',
    'MockLLMClient',
    'PlanMaterializer',
    'TrainingRepository',
    'TrainingService',
]
