"""
Prompt Decomposition
Extracts meal and training preferences from natural language by asking
the completion endpoint one narrow question per field
"""

import asyncio
import logging
from typing import Protocol

from config import SENTINEL, DIET_OPTIONS, BODY_PARTS
from mealfit.models import PreferenceRecord

logger = logging.getLogger(__name__)


class Completer(Protocol):
    async def complete(self, prompt: str) -> str: ...


INCLUDE_TEMPLATE = (
    'List the ingredients the user would like in the meal, separated by commas, '
    'based on this input: "{prompt}" (e.g., "carrots, vegetables"). '
    'Reply with the ingredients only, no explanation.'
)

EXCLUDE_TEMPLATE = (
    'List the ingredients the user does not want in the meal, separated by commas, '
    'based on this input: "{prompt}" (e.g., "pork"). '
    'Reply with the ingredients only, no explanation.'
)

MEAL_TEMPLATE = (
    'Based on this input: "{prompt}", give the meal preference as a single short '
    'phrase, such as "pasta". Reply with the phrase only, no explanation.'
)

DIET_TEMPLATE = (
    'Based on this input: "{prompt}", decide whether the dietary preference is '
    + " or ".join(f'"{option}"' for option in DIET_OPTIONS)
    + '. Reply with exactly one of these options and nothing else.'
)

BODY_PART_TEMPLATE = (
    'Based on this input: "{prompt}", pick the body part to train from these options, '
    'written in lowercase: ' + ", ".join(BODY_PARTS) + '. '
    'Reply with exactly one option and nothing else.'
)


def parse_list_response(response: str) -> list[str]:
    """
    Split a comma-separated answer into trimmed, non-empty items.

    "carrots, peas ,, beans" -> ["carrots", "peas", "beans"]
    Nothing usable -> ["No"]
    """
    if not response:
        return [SENTINEL]
    items = [item.strip() for item in response.split(",")]
    items = [item for item in items if item]
    return items or [SENTINEL]


def parse_scalar_response(response: str) -> str:
    """
    First line of the answer, trimmed.

    "vegetarian\\nbecause..." -> "vegetarian"
    Nothing usable -> "No"
    """
    if not response:
        return SENTINEL
    first_line = response.strip().split("\n")[0].strip()
    return first_line or SENTINEL


async def decompose_prompt(llm: Completer, prompt: str) -> PreferenceRecord:
    """
    Turn one free-text prompt into a PreferenceRecord.

    The five questions are independent, so they run concurrently. Any failed
    completion propagates and no record is produced.
    """
    include, exclude, meal, diet, body_part = await asyncio.gather(
        llm.complete(INCLUDE_TEMPLATE.format(prompt=prompt)),
        llm.complete(EXCLUDE_TEMPLATE.format(prompt=prompt)),
        llm.complete(MEAL_TEMPLATE.format(prompt=prompt)),
        llm.complete(DIET_TEMPLATE.format(prompt=prompt)),
        llm.complete(BODY_PART_TEMPLATE.format(prompt=prompt)),
    )

    record = PreferenceRecord(
        ingredients_to_include=parse_list_response(include),
        ingredients_to_exclude=parse_list_response(exclude),
        dietary_preference=parse_scalar_response(diet),
        body_part_trained=parse_scalar_response(body_part),
        meal_preference=parse_scalar_response(meal),
    )
    logger.info(
        "Extracted preferences: diet=%s body_part=%s meal=%s",
        record.dietary_preference, record.body_part_trained, record.meal_preference
    )
    return record
