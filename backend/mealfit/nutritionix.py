"""
Nutritionix API Integration
Natural-language nutrient lookups
"""

import httpx

from config import NUTRITIONIX_APP_ID, NUTRITIONIX_API_KEY, NUTRITIONIX_BASE_URL
from mealfit.errors import UpstreamError
from mealfit.upstream import UpstreamClient


class NutritionixAPI(UpstreamClient):
    provider = "nutritionix"

    def __init__(
        self,
        client: httpx.AsyncClient,
        app_id: str = NUTRITIONIX_APP_ID,
        api_key: str = NUTRITIONIX_API_KEY,
        base_url: str = NUTRITIONIX_BASE_URL
    ):
        super().__init__(client, base_url)
        self.app_id = app_id
        self.api_key = api_key

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "x-app-id": self.app_id,
            "x-app-key": self.api_key
        }

    async def natural_nutrients(self, query: str) -> dict:
        """Nutrients for the foods named in `query`; matches are under "foods"."""
        result = await self._make_request(
            "POST", "/v2/natural/nutrients", json={"query": query}
        )
        if not isinstance(result, dict):
            raise UpstreamError(self.provider, body="Expected a JSON object")
        return result
