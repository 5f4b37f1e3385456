"""
MealFit Core Module
Preference extraction, upstream adapters, normalization and persistence
"""

from mealfit.parser import decompose_prompt, parse_list_response, parse_scalar_response
from mealfit.models import PreferenceRecord, RecipeSummary, ExerciseSummary, NutritionSummary
from mealfit.errors import (
    RelayError,
    ValidationError,
    NotFoundError,
    UpstreamError,
    PersistenceError,
    InsufficientResultsError,
)

__all__ = [
    "decompose_prompt",
    "parse_list_response",
    "parse_scalar_response",
    "PreferenceRecord",
    "RecipeSummary",
    "ExerciseSummary",
    "NutritionSummary",
    "RelayError",
    "ValidationError",
    "NotFoundError",
    "UpstreamError",
    "PersistenceError",
    "InsufficientResultsError",
]
