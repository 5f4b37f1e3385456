"""
Aggregation Flows
Read stored preferences, query upstream, persist, and hand back results.

Store calls are blocking; async flows hand them to the threadpool.
Steps within a flow are separate store operations with no transaction
around them: summaries written before a later failure stay written.
"""

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from config import (
    SENTINEL,
    RECIPE_SEARCH_LIMIT,
    COMBINED_SEARCH_LIMIT,
    MEAL_CANDIDATES,
    MEAL_SLOTS,
    EXERCISE_SLOTS,
    EXERCISE_LIST_LIMIT,
    LATEST_NUTRITION_LIMIT,
)
from mealfit.context import RelayContext
from mealfit.errors import NotFoundError, InsufficientResultsError
from mealfit.models import (
    PreferenceRecord,
    RecipeSummary,
    ExerciseSummary,
    MealSelection,
    ExerciseSelection,
)
from mealfit.normalizer import (
    to_recipe_summaries,
    to_exercise_summaries,
    to_nutrition_summary,
    merge_unique_recipes,
    rank_by_likes,
)
from mealfit.parser import decompose_prompt

logger = logging.getLogger(__name__)


# ============================================================================
# PREFERENCES
# ============================================================================

async def echo_prompt(ctx: RelayContext, prompt: str) -> str:
    return await ctx.llm.complete(prompt)


async def preferences_from_prompt(ctx: RelayContext, prompt: str) -> PreferenceRecord:
    """Decompose the prompt, then store the record only if every extraction succeeded"""
    record = await decompose_prompt(ctx.llm, prompt)
    return await run_in_threadpool(save_preferences, ctx, record)


def save_preferences(ctx: RelayContext, record: PreferenceRecord) -> PreferenceRecord:
    stored = ctx.store.insert("user_preferences", [record.to_row()])[0]
    logger.info("Stored preferences #%s", stored["id"])
    return PreferenceRecord.from_dict(stored)


def latest_preferences(ctx: RelayContext, missing_message: str = "No data found") -> PreferenceRecord:
    rows = ctx.store.select("user_preferences", order_by="created_at", limit=1)
    if not rows:
        raise NotFoundError(error=missing_message)
    return PreferenceRecord.from_dict(rows[0])


def _query_value(values) -> str:
    """Comma-joined query param with the sentinel left out"""
    if isinstance(values, str):
        values = [values]
    return ",".join(value for value in values if value and value != SENTINEL)


# ============================================================================
# RECIPES
# ============================================================================

async def search_recipes(
    ctx: RelayContext,
    query: str = "",
    exclude_ingredients: str = "",
    diet: str = ""
) -> dict:
    return await ctx.spoonacular.complex_search(
        query=query,
        exclude_ingredients=exclude_ingredients,
        diet=diet,
        number=RECIPE_SEARCH_LIMIT
    )


async def recipes_by_ingredients(
    ctx: RelayContext,
    ingredients: str = "",
    exclude_ingredients: str = "",
    diet: str = ""
) -> list[RecipeSummary]:
    results = await ctx.spoonacular.find_by_ingredients(
        ingredients=ingredients,
        exclude_ingredients=exclude_ingredients,
        diet=diet,
        number=RECIPE_SEARCH_LIMIT
    )
    return to_recipe_summaries(results)


async def combined_recipe_search(
    ctx: RelayContext,
    query: str = "",
    ingredients: str = "",
    exclude_ingredients: str = "",
    diet: str = ""
) -> list[RecipeSummary]:
    """Ingredient matches first, then query matches, each recipe once"""
    by_ingredients = await ctx.spoonacular.find_by_ingredients(
        ingredients=ingredients,
        exclude_ingredients=exclude_ingredients,
        diet=diet,
        number=COMBINED_SEARCH_LIMIT
    )
    by_query = await ctx.spoonacular.complex_search(
        query=query,
        exclude_ingredients=exclude_ingredients,
        diet=diet,
        number=COMBINED_SEARCH_LIMIT
    )
    return merge_unique_recipes(
        to_recipe_summaries(by_ingredients),
        to_recipe_summaries(by_query.get("results") or []),
    )


async def recipe_details(ctx: RelayContext, recipe_id: int) -> dict:
    return await ctx.spoonacular.recipe_information(recipe_id)


async def meal_flow(ctx: RelayContext) -> list[RecipeSummary]:
    """
    Latest preferences -> ingredient search -> top recipes by likes ->
    upsert into meal_data -> one user_meal selection row.
    """
    preferences = await run_in_threadpool(latest_preferences, ctx, "No user preferences found")

    candidates = await ctx.spoonacular.find_by_ingredients(
        ingredients=_query_value(preferences.ingredients_to_include),
        exclude_ingredients=_query_value(preferences.ingredients_to_exclude),
        diet=_query_value(preferences.dietary_preference),
        number=MEAL_CANDIDATES
    )
    top = rank_by_likes(to_recipe_summaries(candidates))[:MEAL_SLOTS]
    if len(top) < MEAL_SLOTS:
        raise InsufficientResultsError("recipes", MEAL_SLOTS, len(top))

    await run_in_threadpool(
        ctx.store.upsert, "meal_data", [recipe.to_dict() for recipe in top], conflict_key="id"
    )
    selection = MealSelection(preferences.id, [recipe.id for recipe in top])
    await run_in_threadpool(ctx.store.insert, "user_meal", [selection.to_row()])

    logger.info("Selected %d recipes for preferences #%s", len(top), preferences.id)
    return top


def latest_meal_data(ctx: RelayContext) -> list[dict]:
    rows = ctx.store.select("meal_data", order_by="created_at", limit=MEAL_SLOTS)
    if not rows:
        raise NotFoundError(error="No meal data found")
    return rows


# ============================================================================
# EXERCISES
# ============================================================================

async def list_exercises(ctx: RelayContext) -> list[dict]:
    return await ctx.exercisedb.list_exercises(limit=EXERCISE_LIST_LIMIT, offset=0)


async def exercise_flow(ctx: RelayContext) -> list[ExerciseSummary]:
    """
    Latest preferences -> exercises for the trained body part ->
    upsert into exercise_data -> one user_exercise selection row.
    """
    preferences = await run_in_threadpool(latest_preferences, ctx, "No user data found")

    body_part = preferences.body_part_trained.strip()
    if not body_part or body_part == SENTINEL:
        raise InsufficientResultsError("exercises", EXERCISE_SLOTS, 0)

    results = await ctx.exercisedb.exercises_by_body_part(body_part, limit=EXERCISE_SLOTS)
    exercises = to_exercise_summaries(results)[:EXERCISE_SLOTS]
    if len(exercises) < EXERCISE_SLOTS:
        raise InsufficientResultsError("exercises", EXERCISE_SLOTS, len(exercises))

    await run_in_threadpool(
        ctx.store.upsert, "exercise_data", [exercise.to_dict() for exercise in exercises], conflict_key="id"
    )
    selection = ExerciseSelection(preferences.id, [exercise.id for exercise in exercises])
    await run_in_threadpool(ctx.store.insert, "user_exercise", [selection.to_row()])

    logger.info("Selected %d exercises for preferences #%s", len(exercises), preferences.id)
    return exercises


def exercise_by_id(ctx: RelayContext, exercise_id: str) -> dict:
    rows = ctx.store.select("exercise_data", filters={"id": exercise_id}, limit=1)
    if not rows:
        raise NotFoundError(error=f"No exercise data found with ID: {exercise_id}")
    return rows[0]


def latest_exercise_data(ctx: RelayContext) -> list[dict]:
    rows = ctx.store.select("exercise_data", order_by="created_at", limit=EXERCISE_SLOTS)
    if not rows:
        raise NotFoundError(error="No exercise data found")
    return rows


# ============================================================================
# NUTRITION
# ============================================================================

async def lookup_nutrition(ctx: RelayContext, query: str) -> dict:
    """Look up one food and keep the snapshot"""
    data = await ctx.nutritionix.natural_nutrients(query)
    summary = to_nutrition_summary(data, query)
    rows = await run_in_threadpool(ctx.store.insert, "nutrition_data", [summary.to_dict()])
    return rows[0]


def latest_nutrition(ctx: RelayContext, limit: Optional[int] = None) -> list[dict]:
    return ctx.store.select(
        "nutrition_data", order_by="id", limit=limit or LATEST_NUTRITION_LIMIT
    )
