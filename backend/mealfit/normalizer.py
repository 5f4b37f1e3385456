"""
Response Normalizer
Maps upstream JSON into the relay's summary records
"""

from typing import Iterable

from mealfit.errors import NotFoundError, UpstreamError
from mealfit.models import RecipeSummary, ExerciseSummary, NutritionSummary


def to_recipe_summary(data: dict) -> RecipeSummary:
    return RecipeSummary(
        id=data["id"],
        title=data.get("title", ""),
        image=data.get("image", ""),
        likes=data.get("likes")
    )


def to_recipe_summaries(items: Iterable[dict], provider: str = "spoonacular") -> list[RecipeSummary]:
    try:
        return [to_recipe_summary(item) for item in items]
    except (KeyError, TypeError, AttributeError) as e:
        raise UpstreamError(provider, body=f"Malformed recipe item: {e}") from e


def to_exercise_summary(data: dict) -> ExerciseSummary:
    return ExerciseSummary(
        id=str(data["id"]),
        body_part=data.get("bodyPart", ""),
        equipment=data.get("equipment", ""),
        gif_url=data.get("gifUrl", ""),
        name=data.get("name", ""),
        target=data.get("target", ""),
        secondary_muscles=list(data.get("secondaryMuscles") or []),
        instructions=list(data.get("instructions") or [])
    )


def to_exercise_summaries(items: Iterable[dict]) -> list[ExerciseSummary]:
    try:
        return [to_exercise_summary(item) for item in items]
    except (KeyError, TypeError, AttributeError) as e:
        raise UpstreamError("exercisedb", body=f"Malformed exercise item: {e}") from e


def to_nutrition_summary(data: dict, query: str = "") -> NutritionSummary:
    """Snapshot of the first food Nutritionix matched"""
    foods = data.get("foods") if isinstance(data, dict) else None
    if not foods:
        raise NotFoundError(
            f"No nutrition data found for: {query}" if query else "No nutrition data found",
            error="No nutrition data found"
        )

    if not isinstance(foods, list) or not isinstance(foods[0], dict):
        raise UpstreamError("nutritionix", body="Malformed foods list")

    food = foods[0]
    photo = food.get("photo") or {}
    if not isinstance(photo, dict):
        photo = {}
    return NutritionSummary(
        food_name=food.get("food_name", query),
        serving_qty=food.get("serving_qty"),
        serving_unit=food.get("serving_unit"),
        calories=food.get("nf_calories"),
        total_fat=food.get("nf_total_fat"),
        saturated_fat=food.get("nf_saturated_fat"),
        cholesterol=food.get("nf_cholesterol"),
        sodium=food.get("nf_sodium"),
        total_carbohydrate=food.get("nf_total_carbohydrate"),
        dietary_fiber=food.get("nf_dietary_fiber"),
        sugars=food.get("nf_sugars"),
        protein=food.get("nf_protein"),
        potassium=food.get("nf_potassium"),
        image_url=photo.get("highres")
    )


def merge_unique_recipes(*result_sets: Iterable[RecipeSummary]) -> list[RecipeSummary]:
    """
    Concatenate result sets and drop repeated ids.
    The first occurrence wins, so pass the preferred set first.
    """
    seen = set()
    merged = []
    for results in result_sets:
        for recipe in results:
            if recipe.id in seen:
                continue
            seen.add(recipe.id)
            merged.append(recipe)
    return merged


def rank_by_likes(recipes: Iterable[RecipeSummary]) -> list[RecipeSummary]:
    """Most liked first; equal likes keep their upstream order"""
    return sorted(recipes, key=lambda recipe: recipe.likes or 0, reverse=True)
