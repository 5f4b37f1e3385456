"""
Spoonacular API Integration
Recipe searches and retrievals via the Spoonacular API
"""

from typing import Any

import httpx

from config import SPOONACULAR_API_KEY, SPOONACULAR_BASE_URL
from mealfit.errors import UpstreamError
from mealfit.upstream import UpstreamClient, drop_empty


class SpoonacularAPI(UpstreamClient):
    """Wrapper for Spoonacular API calls"""
    provider = "spoonacular"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = SPOONACULAR_API_KEY,
        base_url: str = SPOONACULAR_BASE_URL
    ):
        super().__init__(client, base_url)
        self.api_key = api_key

    def _add_api_key(self, params: dict) -> dict:
        """Add API key to request parameters"""
        params = drop_empty(params)
        params["apiKey"] = self.api_key
        return params

    # ========================================================================
    # SEARCH ENDPOINTS
    # ========================================================================

    async def complex_search(
        self,
        query: str = "",
        exclude_ingredients: str = "",
        diet: str = "",
        number: int = 10
    ) -> dict:
        """
        Search by free-text query.
        Returns the raw response object; matches are under "results".
        """
        params = {
            "query": query,
            "excludeIngredients": exclude_ingredients,
            "diet": diet,
            "number": number
        }
        result = await self._make_request(
            "GET", "/recipes/complexSearch", params=self._add_api_key(params)
        )
        result = _expect_object(result)
        if not isinstance(result.get("results") or [], list):
            raise UpstreamError("spoonacular", body="Expected a list under \"results\"")
        return result

    async def find_by_ingredients(
        self,
        ingredients: str = "",
        exclude_ingredients: str = "",
        diet: str = "",
        number: int = 10
    ) -> list[dict]:
        """
        Find recipes using the given comma-separated ingredients.
        Items carry id, title, image and likes.
        """
        params = {
            "ingredients": ingredients,
            "excludeIngredients": exclude_ingredients,
            "diet": diet,
            "number": number
        }
        result = await self._make_request(
            "GET", "/recipes/findByIngredients", params=self._add_api_key(params)
        )
        return _expect_list(result)

    # ========================================================================
    # DETAIL ENDPOINTS
    # ========================================================================

    async def recipe_information(self, recipe_id: int) -> dict:
        """Full recipe details for one id"""
        result = await self._make_request(
            "GET",
            f"/recipes/{recipe_id}/information",
            params=self._add_api_key({})
        )
        return _expect_object(result)


def _expect_list(result: Any) -> list[dict]:
    if not isinstance(result, list):
        raise UpstreamError("spoonacular", body="Expected a list of recipes")
    return result


def _expect_object(result: Any) -> dict:
    if not isinstance(result, dict):
        raise UpstreamError("spoonacular", body="Expected a JSON object")
    return result
