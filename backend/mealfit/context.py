"""
Relay Context
Process-wide adapters and store, created once at startup and handed to
each request handler
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx

from config import DB_PATH, HTTP_TIMEOUT
from mealfit.exercisedb import ExerciseDBAPI
from mealfit.llm import CompletionClient
from mealfit.nutritionix import NutritionixAPI
from mealfit.spoonacular import SpoonacularAPI
from mealfit.store import Store

logger = logging.getLogger(__name__)


@dataclass
class RelayContext:
    http_client: httpx.AsyncClient
    llm: CompletionClient
    spoonacular: SpoonacularAPI
    nutritionix: NutritionixAPI
    exercisedb: ExerciseDBAPI
    store: Store

    async def aclose(self) -> None:
        await self.http_client.aclose()


def build_context(
    db_path: Union[str, Path] = DB_PATH,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> RelayContext:
    """Wire every adapter to one shared HTTP client and open the store"""
    http_client = httpx.AsyncClient(timeout=HTTP_TIMEOUT, transport=transport)
    store = Store(db_path)
    store.init_schema()
    logger.info("Datastore ready at %s", store.db_path)

    return RelayContext(
        http_client=http_client,
        llm=CompletionClient(http_client),
        spoonacular=SpoonacularAPI(http_client),
        nutritionix=NutritionixAPI(http_client),
        exercisedb=ExerciseDBAPI(http_client),
        store=store,
    )
