"""
Tests for prompt decomposition
"""
import asyncio

import pytest

from mealfit.errors import UpstreamError
from mealfit.parser import (
    decompose_prompt,
    parse_list_response,
    parse_scalar_response,
)


class FakeLLM:
    """Answers each extraction question from a fixed table"""

    def __init__(self, answers: dict, fail_on: str = ""):
        self.answers = answers
        self.fail_on = fail_on
        self.prompts = []

    @staticmethod
    def field_for(prompt: str) -> str:
        if "body part" in prompt:
            return "body_part"
        if "dietary preference" in prompt:
            return "diet"
        if "meal preference" in prompt:
            return "meal"
        if "does not want" in prompt:
            return "exclude"
        return "include"

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        field = self.field_for(prompt)
        if field == self.fail_on:
            raise UpstreamError("openai", status=500, body={"error": "boom"})
        return self.answers.get(field, "")


def test_list_response_drops_empty_tokens():
    assert parse_list_response("carrots, peas ,, beans") == ["carrots", "peas", "beans"]


def test_list_response_sentinel():
    assert parse_list_response("") == ["No"]
    assert parse_list_response(" , ,") == ["No"]


def test_scalar_response_first_line():
    assert parse_scalar_response("vegetarian\nbecause you said no meat") == "vegetarian"
    assert parse_scalar_response("  pasta  ") == "pasta"


def test_scalar_response_sentinel():
    assert parse_scalar_response("") == "No"
    assert parse_scalar_response("   \n  ") == "No"


def test_decompose_prompt_maps_fields():
    llm = FakeLLM({
        "include": "chicken, rice",
        "exclude": "pork",
        "meal": "stir fry\nsomething quick",
        "diet": "high-protein",
        "body_part": "upper legs",
    })

    record = asyncio.run(decompose_prompt(llm, "I did squats and want chicken, no pork"))

    assert record.ingredients_to_include == ["chicken", "rice"]
    assert record.ingredients_to_exclude == ["pork"]
    assert record.meal_preference == "stir fry"
    assert record.dietary_preference == "high-protein"
    assert record.body_part_trained == "upper legs"
    assert len(llm.prompts) == 5
    assert all("I did squats" in p for p in llm.prompts)


def test_decompose_prompt_never_empty():
    record = asyncio.run(decompose_prompt(FakeLLM({}), "hello"))

    assert record.ingredients_to_include == ["No"]
    assert record.ingredients_to_exclude == ["No"]
    assert record.meal_preference == "No"
    assert record.dietary_preference == "No"
    assert record.body_part_trained == "No"


def test_decompose_prompt_fails_as_a_whole():
    llm = FakeLLM({"include": "eggs"}, fail_on="diet")

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(decompose_prompt(llm, "eggs for breakfast"))

    assert excinfo.value.provider == "openai"
    assert excinfo.value.status == 500
