"""
MealFit Relay - FastAPI Application
Main entry point for the meal and exercise planning API.
Relays an LLM, Spoonacular, Nutritionix and ExerciseDB, and keeps
normalized results in the datastore.
"""

import logging
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import CORS_ORIGINS, LOG_LEVEL, PORT, SENTINEL
from mealfit import flows
from mealfit.context import RelayContext, build_context
from mealfit.errors import RelayError, ValidationError
from mealfit.models import PreferenceRecord
from mealfit.parser import parse_list_response

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Earlier route names, still served for older clients
LEGACY_ROUTES = {
    "/openai": "/llm-echo",
    "/openai-supabase": "/preferences-from-prompt",
    "/add-data": "/preferences",
    "/latest-data": "/latest-preferences",
    "/latest-data-with-recipes": "/latest-preferences-with-recipes",
    "/latest-data-with-exercises": "/latest-preferences-with-exercises",
}


# Request Models
class PromptRequest(BaseModel):
    prompt: str


class PreferencesRequest(BaseModel):
    ingredientsToInclude: Optional[Union[list[str], str]] = None
    ingredientsToExclude: Optional[Union[list[str], str]] = None
    dietaryPreferences: Optional[str] = None
    bodyPartTrained: Optional[Any] = None
    mealPreferences: Optional[Union[str, list[str]]] = None


def get_context(request: Request) -> RelayContext:
    return request.app.state.context


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_list(value: Union[list[str], str]) -> list[str]:
    if isinstance(value, str):
        return parse_list_response(value)
    items = [item.strip() for item in value if item and item.strip()]
    return items or [SENTINEL]


def preferences_from_request(body: PreferencesRequest) -> PreferenceRecord:
    """Validate a directly submitted preference set"""
    fields = [
        body.ingredientsToInclude,
        body.ingredientsToExclude,
        body.dietaryPreferences,
        body.mealPreferences,
    ]
    if body.bodyPartTrained in (None, "") or any(_is_missing(value) for value in fields):
        raise ValidationError(error="All fields are required")

    if not isinstance(body.bodyPartTrained, str) or not body.bodyPartTrained.strip():
        raise ValidationError(error="bodyPartTrained must be a non-empty string")

    meal = body.mealPreferences
    if isinstance(meal, list):
        meal = meal[0] if meal else SENTINEL

    return PreferenceRecord(
        ingredients_to_include=_as_list(body.ingredientsToInclude),
        ingredients_to_exclude=_as_list(body.ingredientsToExclude),
        dietary_preference=body.dietaryPreferences.strip(),
        body_part_trained=body.bodyPartTrained.strip(),
        meal_preference=meal.strip() or SENTINEL,
    )


router = APIRouter()


# API Endpoints
@router.get("/")
async def root():
    """Root endpoint"""
    return {"message": "MealFit Relay is running", "version": VERSION}


@router.get("/health")
def health_check(ctx: RelayContext = Depends(get_context)):
    """Health check endpoint"""
    database = ctx.store.ping()
    return {"status": "healthy" if database else "unhealthy", "database": database}


# ----------------------------------------------------------------------------
# Preferences
# ----------------------------------------------------------------------------

@router.post("/llm-echo")
async def llm_echo(request: PromptRequest, ctx: RelayContext = Depends(get_context)):
    """Single completion for a raw prompt"""
    return {"message": await flows.echo_prompt(ctx, request.prompt)}


@router.post("/preferences-from-prompt")
async def preferences_from_prompt(request: PromptRequest, ctx: RelayContext = Depends(get_context)):
    """
    Extract preferences from free text with the LLM and store them.
    Nothing is stored if any extraction call fails.
    """
    record = await flows.preferences_from_prompt(ctx, request.prompt)
    return {"message": "Data added successfully", "data": record.to_dict()}


@router.post("/preferences")
def add_preferences(request: PreferencesRequest, ctx: RelayContext = Depends(get_context)):
    record = flows.save_preferences(ctx, preferences_from_request(request))
    return {"message": "Data added successfully", "data": record.to_dict()}


@router.get("/latest-preferences")
def get_latest_preferences(ctx: RelayContext = Depends(get_context)):
    return {"data": flows.latest_preferences(ctx).to_dict()}


# ----------------------------------------------------------------------------
# Recipes
# ----------------------------------------------------------------------------

@router.get("/recipes")
async def search_recipes(
    query: str = "",
    excludeIngredients: str = "",
    diet: str = "",
    ctx: RelayContext = Depends(get_context)
):
    """Search recipes via Spoonacular complexSearch"""
    return await flows.search_recipes(ctx, query, excludeIngredients, diet)


@router.get("/recipes-by-ingredients")
async def recipes_by_ingredients(
    ingredients: str = "",
    excludeIngredients: str = "",
    diet: str = "",
    ctx: RelayContext = Depends(get_context)
):
    recipes = await flows.recipes_by_ingredients(ctx, ingredients, excludeIngredients, diet)
    return [r.to_dict() for r in recipes]


@router.get("/combined-recipes-search")
async def combined_recipes_search(
    query: str = "",
    ingredients: str = "",
    excludeIngredients: str = "",
    diet: str = "",
    ctx: RelayContext = Depends(get_context)
):
    """Ingredient and query search merged, one entry per recipe id"""
    recipes = await flows.combined_recipe_search(ctx, query, ingredients, excludeIngredients, diet)
    return [r.to_dict() for r in recipes]


@router.get("/recipe-data/{recipe_id}")
async def recipe_data(recipe_id: int, ctx: RelayContext = Depends(get_context)):
    """Full recipe details from Spoonacular"""
    return await flows.recipe_details(ctx, recipe_id)


@router.get("/latest-preferences-with-recipes")
async def latest_preferences_with_recipes(ctx: RelayContext = Depends(get_context)):
    recipes = await flows.meal_flow(ctx)
    return {"recipes": [r.to_dict() for r in recipes]}


@router.get("/latest-meal-data")
def latest_meal_data(ctx: RelayContext = Depends(get_context)):
    return {
        "message": "Latest meal data fetched successfully",
        "data": flows.latest_meal_data(ctx),
    }


# ----------------------------------------------------------------------------
# Exercises
# ----------------------------------------------------------------------------

@router.get("/exercises")
async def exercises(ctx: RelayContext = Depends(get_context)):
    return await flows.list_exercises(ctx)


@router.get("/exercise-data/{exercise_id}")
def exercise_data(exercise_id: str, ctx: RelayContext = Depends(get_context)):
    return {
        "message": "Exercise data fetched successfully",
        "data": flows.exercise_by_id(ctx, exercise_id),
    }


@router.get("/latest-preferences-with-exercises")
async def latest_preferences_with_exercises(ctx: RelayContext = Depends(get_context)):
    exercises = await flows.exercise_flow(ctx)
    return {"exercises": [e.to_api_dict() for e in exercises]}


@router.get("/latest-exercise-data")
def latest_exercise_data(ctx: RelayContext = Depends(get_context)):
    return {
        "message": "Latest exercise data fetched successfully",
        "data": flows.latest_exercise_data(ctx),
    }


# ----------------------------------------------------------------------------
# Nutrition
# ----------------------------------------------------------------------------

@router.get("/nutrition")
async def nutrition(query: str = Query(..., min_length=1), ctx: RelayContext = Depends(get_context)):
    """Nutritionix lookup; the first matched food is stored"""
    row = await flows.lookup_nutrition(ctx, query)
    return {"message": "Nutrition data saved successfully!", "data": row}


@router.get("/latest-nutrition")
def latest_nutrition(ctx: RelayContext = Depends(get_context)):
    return flows.latest_nutrition(ctx)


def _add_legacy_routes(app: FastAPI) -> None:
    current = {route.path: route for route in router.routes}
    for legacy_path, path in LEGACY_ROUTES.items():
        route = current[path]
        app.add_api_route(
            legacy_path,
            route.endpoint,
            methods=list(route.methods),
            include_in_schema=False
        )


def create_app(context: Optional[RelayContext] = None) -> FastAPI:
    """
    Build the application. Without a context, one is created from config
    on startup and closed on shutdown.
    """
    app = FastAPI(
        title="MealFit Relay API",
        description="Meal and exercise planning relay for LLM, recipe, nutrition and exercise APIs",
        version=VERSION
    )
    app.state.context = context

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS + ["*"],  # Allow all in development
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())}
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": str(exc)}
        )

    @app.on_event("startup")
    async def startup_event():
        """Initialize on startup"""
        if app.state.context is None:
            app.state.context = build_context()
            app.state.owns_context = True
        logger.info("MealFit Relay v%s started", VERSION)

    @app.on_event("shutdown")
    async def shutdown_event():
        if getattr(app.state, "owns_context", False):
            await app.state.context.aclose()

    app.include_router(router)
    _add_legacy_routes(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
